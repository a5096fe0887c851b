"""Tests for concurrent schema tracking."""

import os
import random
import sys
import tempfile
import unittest
from concurrent.futures import ThreadPoolExecutor

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

from movementprofiler.schematracker import (
    ConcurrentCounter,
    ObserverMap,
    SchemaTracker,
    TrackerSnapshot,
    load_snapshot,
    save_snapshot,
)


def sample_documents():
    return [
        {"movementId": 1, "status": "Completed", "tags": ["a", "b", "c"],
         "jobInfo": {"salary": 50000, "title": "Clerk"}},
        {"movementId": 2, "status": "Approved", "tags": [],
         "jobInfo": {"salary": None, "title": ""}},
        {"movementId": 3, "movementType": "Transfer",
         "participants": [{"role": "Manager"}, {"role": "Employee", "banner": "North"}]},
    ]


class TestSchemaTracker(unittest.TestCase):
    """Test cases for SchemaTracker path derivation and counting."""

    def test_object_paths(self):
        tracker = SchemaTracker()
        tracker.track('root', {"jobInfo": {"salary": 10, "title": "Clerk"}})

        fields = tracker.snapshot().fields
        self.assertEqual(set(fields), {'root', 'root.jobInfo', 'root.jobInfo.salary', 'root.jobInfo.title'})
        self.assertEqual(fields['root'].value_kinds, frozenset({'object'}))

    def test_array_dual_paths(self):
        """Test that array elements are tracked under indexed and wildcard paths."""
        tracker = SchemaTracker()
        tracker.track('root', {"tags": ["a", "b", "c"]})

        fields = tracker.snapshot().fields
        for i in range(3):
            self.assertEqual(fields[f'root.tags[{i}]'].total_occurrences, 1)
        self.assertNotIn('root.tags[3]', fields)
        self.assertEqual(fields['root.tags[]'].total_occurrences, 3)
        self.assertEqual(fields['root.tags'].value_kinds, frozenset({'array'}))

    def test_indexed_paths_limited_to_first_ten(self):
        tracker = SchemaTracker()
        tracker.track('root', {"items": list(range(25))})

        fields = tracker.snapshot().fields
        self.assertIn('root.items[9]', fields)
        self.assertNotIn('root.items[10]', fields)
        self.assertEqual(fields['root.items[]'].total_occurrences, 25)

    def test_nested_array_of_objects(self):
        tracker = SchemaTracker()
        tracker.track('root', {"jobInfo": [{"salary": 1}, {"salary": 2}]})

        fields = tracker.snapshot().fields
        self.assertEqual(fields['root.jobInfo[].salary'].total_occurrences, 2)
        self.assertEqual(fields['root.jobInfo[0].salary'].total_occurrences, 1)
        self.assertEqual(fields['root.jobInfo[1].salary'].total_occurrences, 1)

    def test_headline_counts(self):
        tracker = SchemaTracker()
        for doc in sample_documents():
            tracker.add_file()
            tracker.count_headlines(doc)

        snapshot = tracker.snapshot()
        self.assertEqual(snapshot.total_files, 3)
        self.assertEqual(snapshot.distributions['status'], {"Completed": 1, "Approved": 1})
        self.assertEqual(snapshot.distributions['movementType'], {"Transfer": 1})

    def test_headline_ignores_non_strings(self):
        tracker = SchemaTracker()
        tracker.count_headlines({"status": 5, "movementType": None})
        tracker.count_headlines(["not", "an", "object"])
        self.assertEqual(tracker.snapshot().distributions, {'movementType': {}, 'status': {}})

    def test_order_independence(self):
        """Test that shuffled, concurrent tracking yields identical statistics."""
        documents = sample_documents() * 50

        def run(docs, workers):
            tracker = SchemaTracker()

            def process(doc):
                tracker.add_file()
                tracker.track('root', doc)
                tracker.count_headlines(doc)

            with ThreadPoolExecutor(max_workers=workers) as executor:
                list(executor.map(process, docs))
            return tracker.snapshot()

        baseline = run(documents, 1)
        shuffled = list(documents)
        random.Random(7).shuffle(shuffled)
        concurrent = run(shuffled, 8)

        self.assertEqual(baseline.total_files, concurrent.total_files)
        self.assertEqual(baseline.distributions, concurrent.distributions)
        self.assertEqual(set(baseline.fields), set(concurrent.fields))
        for path, stats in baseline.fields.items():
            other = concurrent.fields[path]
            self.assertEqual(stats.total_occurrences, other.total_occurrences, path)
            self.assertEqual(stats.null_or_empty_count, other.null_or_empty_count, path)
            self.assertEqual(stats.value_kinds, other.value_kinds, path)
            self.assertEqual(stats.min_numeric, other.min_numeric, path)
            self.assertEqual(stats.max_numeric, other.max_numeric, path)
            self.assertEqual(stats.max_length, other.max_length, path)

    def test_runs_are_isolated(self):
        first = SchemaTracker()
        first.add_file()
        first.track('root', {"a": 1})
        second = SchemaTracker()
        self.assertEqual(second.total_files, 0)
        self.assertEqual(second.snapshot().fields, {})

    def test_snapshot_is_detached(self):
        tracker = SchemaTracker()
        tracker.track('root', {"a": 1})
        snapshot = tracker.snapshot()
        tracker.track('root', {"a": 2})
        self.assertEqual(snapshot.fields['root.a'].total_occurrences, 1)

    def test_snapshot_file_round_trip(self):
        tracker = SchemaTracker()
        for doc in sample_documents():
            tracker.add_file()
            tracker.track('root', doc)
            tracker.count_headlines(doc)
        snapshot = tracker.snapshot(["bad.json: Expecting value"])

        with tempfile.TemporaryDirectory() as tmp:
            snapshot_file = os.path.join(tmp, 'out', 'snapshot.json')
            save_snapshot(snapshot, snapshot_file)
            restored = load_snapshot(snapshot_file)

        self.assertIsInstance(restored, TrackerSnapshot)
        self.assertEqual(restored.total_files, snapshot.total_files)
        self.assertEqual(restored.errors, snapshot.errors)
        self.assertEqual(restored.distributions, snapshot.distributions)
        self.assertEqual(restored.fields, snapshot.fields)


class TestConcurrencyPrimitives(unittest.TestCase):
    """Test cases for the shared map and counters."""

    def test_get_or_create_is_idempotent(self):
        observers = ObserverMap(shards=4)
        results = []

        def get():
            results.append(observers.get_or_create('root.status'))

        with ThreadPoolExecutor(max_workers=8) as executor:
            for _ in range(100):
                executor.submit(get)

        self.assertEqual(len(results), 100)
        self.assertTrue(all(r is results[0] for r in results))
        self.assertEqual(len(observers), 1)

    def test_counter(self):
        counter = ConcurrentCounter()
        with ThreadPoolExecutor(max_workers=8) as executor:
            for i in range(400):
                executor.submit(counter.increment, 'even' if i % 2 == 0 else 'odd')
        self.assertEqual(counter.snapshot(), {'even': 200, 'odd': 200})


if __name__ == '__main__':
    unittest.main()
