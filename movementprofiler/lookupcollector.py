"""Collects lookup-table seed values from movement documents.

The downstream schema builder creates one reference table per category
(movement types, banners, cost centres, ...). This collector pulls the
distinct values for those tables out of each document. Categories that
carry a code and a descriptive name (brands, departments, cost centres)
are collected as ``LookupItem`` tuples.
"""

import threading
from dataclasses import dataclass
from typing import Any, Dict, List

UNKNOWN = 'Unknown'

MOVEMENT_TYPES = 'movement_types'
STATUSES = 'statuses'
EMPLOYEE_GROUPS = 'employee_groups'
EMPLOYEE_SUBGROUPS = 'employee_subgroups'
BANNERS = 'banners'
GROUPS = 'groups'
PARTICIPANT_ROLES = 'participant_roles'
JOB_ROLES = 'job_roles'
MUTUAL_FLAGS = 'mutual_flags'
BREAK_TYPES = 'break_types'
HISTORY_EVENT_TYPES = 'history_event_types'
BRANDS = 'brands'
DEPARTMENTS = 'departments'
COST_CENTRES = 'cost_centres'

VALUE_CATEGORIES = (MOVEMENT_TYPES, STATUSES, EMPLOYEE_GROUPS, EMPLOYEE_SUBGROUPS, BANNERS, GROUPS,
                    PARTICIPANT_ROLES, JOB_ROLES, MUTUAL_FLAGS, BREAK_TYPES, HISTORY_EVENT_TYPES)
ITEM_CATEGORIES = (BRANDS, DEPARTMENTS, COST_CENTRES)

# Tag prefix -> category, for tags such as "FromBanner:Coles"
TAG_PREFIXES = {
    'FromEmployeeGroup:': EMPLOYEE_GROUPS,
    'ToEmployeeGroup:': EMPLOYEE_GROUPS,
    'FromEmployeeSubgroup:': EMPLOYEE_SUBGROUPS,
    'ToEmployeeSubgroup:': EMPLOYEE_SUBGROUPS,
    'FromBanner:': BANNERS,
    'ToBanner:': BANNERS,
    'FromGroup:': GROUPS,
    'ToGroup:': GROUPS,
}

WEEK_DAYS = ('mon', 'tue', 'wed', 'thu', 'fri', 'sat', 'sun')


@dataclass(frozen=True)
class LookupItem:
    """A coded lookup value."""
    code: str
    name: str = UNKNOWN
    display_name: str = UNKNOWN


def _string(obj: Any, key: str) -> str | None:
    if isinstance(obj, dict):
        value = obj.get(key)
        if isinstance(value, str):
            return value
    return None


def _list(obj: Any, key: str) -> List[Any]:
    if isinstance(obj, dict):
        value = obj.get(key)
        if isinstance(value, list):
            return value
    return []


class LookupValueCollector:
    """Thread-safe collector of distinct lookup values per category."""

    def __init__(self):
        self._lock = threading.Lock()
        # casefolded value -> first spelling seen
        self._values: Dict[str, Dict[str, str]] = {name: {} for name in VALUE_CATEGORIES}
        self._items: Dict[str, set] = {name: set() for name in ITEM_CATEGORIES}

    def add_value(self, category: str, value: str | None) -> None:
        value = value or UNKNOWN
        with self._lock:
            self._values[category].setdefault(value.casefold(), value)

    def add_item(self, category: str, item: LookupItem) -> None:
        with self._lock:
            self._items[category].add(item)

    def collect(self, document: Any) -> None:
        """Extracts every lookup value found in one movement document."""
        if not isinstance(document, dict):
            return

        for key, category in (('movementType', MOVEMENT_TYPES), ('status', STATUSES)):
            if key in document and isinstance(document[key], str):
                self.add_value(category, document[key])

        for key in ('currentJobInfo', 'newJobInfo'):
            job_info = document.get(key)
            if isinstance(job_info, dict):
                self._collect_job_info(job_info)

        for participant in _list(document, 'participants'):
            if isinstance(participant, dict):
                self._collect_participant(participant)

        for event in _list(document, 'history'):
            # the first property name of a history event is its type
            if isinstance(event, dict) and event:
                self.add_value(HISTORY_EVENT_TYPES, next(iter(event)))

        for tag in _list(document, 'tags'):
            if isinstance(tag, str):
                self._collect_tag(tag)

        for key in ('currentContract', 'newContract'):
            contract = document.get(key)
            if isinstance(contract, dict):
                self._collect_contract(contract)

    def _collect_job_info(self, job_info: Dict[str, Any]) -> None:
        if isinstance(job_info.get('employeeGroup'), str):
            self.add_value(EMPLOYEE_GROUPS, job_info['employeeGroup'])

        position = job_info.get('position')
        if not isinstance(position, dict):
            return

        for key, category in (('employeeSubgroup', EMPLOYEE_SUBGROUPS), ('banner', BANNERS),
                              ('group', GROUPS), ('jobRole', JOB_ROLES)):
            if isinstance(position.get(key), str):
                self.add_value(category, position[key])

        brand = _string(position, 'brand')
        if brand is not None:
            self.add_item(BRANDS, LookupItem(
                brand or UNKNOWN,
                _string(position, 'brandName') or UNKNOWN,
                _string(position, 'brandDisplayName') or UNKNOWN))

        self._collect_coded(position)

    def _collect_participant(self, participant: Dict[str, Any]) -> None:
        for key, category in (('role', PARTICIPANT_ROLES), ('banner', BANNERS)):
            if isinstance(participant.get(key), str):
                self.add_value(category, participant[key])
        self._collect_coded(participant)

    def _collect_coded(self, obj: Dict[str, Any]) -> None:
        department = _string(obj, 'payingDepartment')
        if department is not None:
            self.add_item(DEPARTMENTS, LookupItem(
                department or UNKNOWN, _string(obj, 'payingDepartmentName') or UNKNOWN))

        cost_centre = _string(obj, 'costCentre')
        if cost_centre is not None:
            self.add_item(COST_CENTRES, LookupItem(
                cost_centre or UNKNOWN, _string(obj, 'costCentreName') or UNKNOWN))

    def _collect_tag(self, tag: str) -> None:
        for prefix, category in TAG_PREFIXES.items():
            if tag.startswith(prefix):
                self.add_value(category, tag[len(prefix):])
                return

    def _collect_contract(self, contract: Dict[str, Any]) -> None:
        for flag in _list(contract, 'mutualFlags'):
            if isinstance(flag, str) and flag:
                self.add_value(MUTUAL_FLAGS, flag)

        for week in _list(contract, 'weeks'):
            if not isinstance(week, dict):
                continue
            for day in WEEK_DAYS:
                for shift in _list(week, day):
                    for break_type in _list(shift, 'breaks'):
                        if isinstance(break_type, str) and break_type:
                            self.add_value(BREAK_TYPES, break_type)

    def snapshot(self) -> Dict[str, List[Any]]:
        """Returns the collected values as sorted plain data."""
        with self._lock:
            result: Dict[str, List[Any]] = {
                name: sorted(values.values(), key=str.casefold) for name, values in self._values.items()
            }
            for name, items in self._items.items():
                result[name] = [
                    {'code': item.code, 'name': item.name, 'display_name': item.display_name}
                    if name == BRANDS else {'code': item.code, 'name': item.name}
                    for item in sorted(items, key=lambda i: (i.code, i.name, i.display_name))
                ]
            return result

    def summary(self) -> Dict[str, int]:
        with self._lock:
            counts = {name: len(values) for name, values in self._values.items()}
            counts.update({name: len(items) for name, items in self._items.items()})
            return counts
