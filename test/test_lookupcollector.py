"""Tests for lookup value collection from movement documents."""

import os
import sys
import unittest

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

from movementprofiler.lookupcollector import LookupValueCollector, LookupItem


MOVEMENT = {
    "movementType": "Transfer",
    "status": "Completed",
    "currentJobInfo": {
        "employeeGroup": "Permanent",
        "position": {
            "employeeSubgroup": "Full Time",
            "banner": "Supermarkets",
            "brand": "SM",
            "brandName": "Supermarkets Pty",
            "brandDisplayName": "Supermarkets",
            "group": "Retail",
            "payingDepartment": "D100",
            "payingDepartmentName": "Grocery",
            "costCentre": "C200",
            "costCentreName": "Store 200",
            "jobRole": "Team Member",
        },
    },
    "newJobInfo": {
        "employeeGroup": "permanent",
        "position": {"banner": "Liquor", "costCentre": "C300"},
    },
    "participants": [
        {"role": "Requester", "banner": "Supermarkets", "payingDepartment": "D100",
         "payingDepartmentName": "Grocery"},
        {"role": "Approver"},
        "not an object",
    ],
    "history": [
        {"submitted": {"at": "2024-01-01"}},
        {"approved": {"by": "x"}, "note": "ignored"},
        {},
    ],
    "tags": ["FromBanner:Express", "ToEmployeeGroup:Casual", "FromGroup:Wholesale", "Unrelated:Value"],
    "newContract": {
        "mutualFlags": ["Overtime", ""],
        "weeks": [
            {"mon": [{"breaks": ["Meal", "Rest"]}], "sat": [{"breaks": ["Meal"]}], "xyz": [{"breaks": ["Ignored"]}]},
        ],
    },
}


class TestLookupValueCollector(unittest.TestCase):
    """Test cases for LookupValueCollector."""

    def setUp(self):
        self.collector = LookupValueCollector()
        self.collector.collect(MOVEMENT)
        self.values = self.collector.snapshot()

    def test_root_values(self):
        self.assertEqual(self.values['movement_types'], ["Transfer"])
        self.assertEqual(self.values['statuses'], ["Completed"])

    def test_job_info_values(self):
        self.assertEqual(self.values['employee_groups'], ["Casual", "Permanent"])
        self.assertEqual(self.values['employee_subgroups'], ["Full Time"])
        self.assertEqual(self.values['banners'], ["Express", "Liquor", "Supermarkets"])
        self.assertEqual(self.values['groups'], ["Retail", "Wholesale"])
        self.assertEqual(self.values['job_roles'], ["Team Member"])

    def test_coded_items(self):
        self.assertEqual(self.values['brands'], [
            {"code": "SM", "name": "Supermarkets Pty", "display_name": "Supermarkets"}])
        self.assertEqual(self.values['departments'], [{"code": "D100", "name": "Grocery"}])
        self.assertEqual(self.values['cost_centres'], [
            {"code": "C200", "name": "Store 200"},
            {"code": "C300", "name": "Unknown"},
        ])

    def test_participants_and_history(self):
        self.assertEqual(self.values['participant_roles'], ["Approver", "Requester"])
        self.assertEqual(self.values['history_event_types'], ["approved", "submitted"])

    def test_contract_values(self):
        self.assertEqual(self.values['mutual_flags'], ["Overtime"])
        self.assertEqual(self.values['break_types'], ["Meal", "Rest"])

    def test_empty_value_defaults_to_unknown(self):
        collector = LookupValueCollector()
        collector.collect({"status": "", "currentJobInfo": {"position": {"brand": ""}}})
        values = collector.snapshot()
        self.assertEqual(values['statuses'], ["Unknown"])
        self.assertEqual(values['brands'], [{"code": "Unknown", "name": "Unknown", "display_name": "Unknown"}])

    def test_summary(self):
        summary = self.collector.summary()
        self.assertEqual(summary['banners'], 3)
        self.assertEqual(summary['cost_centres'], 2)
        self.assertEqual(summary['movement_types'], 1)

    def test_non_object_document_is_ignored(self):
        collector = LookupValueCollector()
        collector.collect(["a", "b"])
        self.assertTrue(all(count == 0 for count in collector.summary().values()))

    def test_lookup_item_defaults(self):
        item = LookupItem("C1")
        self.assertEqual((item.name, item.display_name), ("Unknown", "Unknown"))


if __name__ == '__main__':
    unittest.main()
