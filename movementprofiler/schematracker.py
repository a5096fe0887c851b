"""Concurrent schema tracking for parsed JSON documents.

The tracker walks each document tree, derives a field path for every node
and feeds the node to the FieldObserver registered for that path. Arrays are
tracked twice: the first ``MAX_INDEXED_ELEMENTS`` elements under positional
paths (``root.tags[0]``) and every element under a shared wildcard path
(``root.tags[]``).
"""

import json
import os
import threading
import zlib
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from movementprofiler.fieldobserver import MAX_SAMPLE_VALUES, FieldObserver, FieldSnapshot

ROOT_PATH = 'root'

# Positional paths are recorded for this many leading array elements
MAX_INDEXED_ELEMENTS = 10

# Headline categorical fields: document property -> report heading
HEADLINE_FIELDS = {
    'movementType': 'Movement Types',
    'status': 'Status',
}

OBSERVER_SHARDS = 16


class AtomicCounter:
    """An integer counter safe for concurrent increments."""

    def __init__(self, value: int = 0):
        self._value = value
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        with self._lock:
            self._value += amount
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class ConcurrentCounter:
    """Thread-safe mapping of value -> occurrence count."""

    def __init__(self):
        self._counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def increment(self, key: str, amount: int = 1) -> None:
        with self._lock:
            self._counts[key] = self._counts.get(key, 0) + amount

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)


class ObserverMap:
    """Sharded map of field path -> FieldObserver.

    Each shard has its own lock, so workers tracking different paths rarely
    contend. ``get_or_create`` is idempotent: the first caller for a path
    creates the observer and every later caller receives the same instance.
    """

    def __init__(self, shards: int = OBSERVER_SHARDS, max_sample_values: int = MAX_SAMPLE_VALUES):
        self.max_sample_values = max_sample_values
        self._shards: List[Tuple[threading.Lock, Dict[str, FieldObserver]]] = [
            (threading.Lock(), {}) for _ in range(max(1, shards))
        ]

    def _shard(self, path: str) -> Tuple[threading.Lock, Dict[str, FieldObserver]]:
        return self._shards[zlib.crc32(path.encode('utf-8')) % len(self._shards)]

    def get_or_create(self, path: str) -> FieldObserver:
        lock, observers = self._shard(path)
        with lock:
            observer = observers.get(path)
            if observer is None:
                observer = FieldObserver(self.max_sample_values)
                observers[path] = observer
            return observer

    def items(self) -> List[Tuple[str, FieldObserver]]:
        result: List[Tuple[str, FieldObserver]] = []
        for lock, observers in self._shards:
            with lock:
                result.extend(observers.items())
        return result

    def __len__(self) -> int:
        return len(self.items())


@dataclass(frozen=True)
class TrackerSnapshot:
    """Immutable view of a finished analysis run."""
    total_files: int
    fields: Dict[str, FieldSnapshot]
    distributions: Dict[str, Dict[str, int]]
    errors: Tuple[str, ...] = ()
    headline_fields: Dict[str, str] = field(default_factory=lambda: dict(HEADLINE_FIELDS))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_files': self.total_files,
            'headline_fields': dict(self.headline_fields),
            'distributions': {name: dict(counts) for name, counts in self.distributions.items()},
            'errors': list(self.errors),
            'fields': {path: stats.to_dict() for path, stats in sorted(self.fields.items())},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrackerSnapshot':
        return cls(
            total_files=int(data.get('total_files', 0)),
            fields={path: FieldSnapshot.from_dict(stats) for path, stats in data.get('fields', {}).items()},
            distributions={name: {k: int(v) for k, v in counts.items()}
                           for name, counts in data.get('distributions', {}).items()},
            errors=tuple(data.get('errors', [])),
            headline_fields=dict(data.get('headline_fields', HEADLINE_FIELDS)),
        )


class SchemaTracker:
    """Maps field paths to observers and walks documents into them.

    A tracker belongs to one analysis run. ``track``, ``add_file`` and
    ``count`` may be called concurrently from any number of threads; the
    accumulated statistics are complete once every worker has joined.
    """

    def __init__(self, headline_fields: Optional[Dict[str, str]] = None,
                 max_indexed_elements: int = MAX_INDEXED_ELEMENTS,
                 max_sample_values: int = MAX_SAMPLE_VALUES):
        self.headline_fields = dict(HEADLINE_FIELDS if headline_fields is None else headline_fields)
        self.max_indexed_elements = max_indexed_elements
        self.observers = ObserverMap(max_sample_values=max_sample_values)
        self.distributions: Dict[str, ConcurrentCounter] = {
            name: ConcurrentCounter() for name in self.headline_fields
        }
        self._total_files = AtomicCounter()

    @property
    def total_files(self) -> int:
        return self._total_files.value

    def add_file(self) -> None:
        self._total_files.increment()

    def track(self, path: str, node: Any) -> None:
        """Records ``node`` under ``path`` and recurses into its children."""
        self.observers.get_or_create(path).observe(node)
        if isinstance(node, dict):
            for name, value in node.items():
                self.track(f'{path}.{name}', value)
        elif isinstance(node, list):
            for index, item in enumerate(node[:self.max_indexed_elements]):
                self.track(f'{path}[{index}]', item)
            for item in node:
                self.track(f'{path}[]', item)

    def count(self, field_name: str, value: str) -> None:
        """Increments the distribution of a headline field."""
        counter = self.distributions.get(field_name)
        if counter is not None:
            counter.increment(value)

    def count_headlines(self, document: Any) -> None:
        """Counts every headline field present as a string at the document root."""
        if not isinstance(document, dict):
            return
        for field_name in self.headline_fields:
            value = document.get(field_name)
            if isinstance(value, str):
                self.count(field_name, value)

    def snapshot(self, errors: Iterable[str] = ()) -> TrackerSnapshot:
        return TrackerSnapshot(
            total_files=self.total_files,
            fields={path: observer.snapshot() for path, observer in self.observers.items()},
            distributions={name: counter.snapshot() for name, counter in self.distributions.items()},
            errors=tuple(errors),
            headline_fields=dict(self.headline_fields),
        )


def save_snapshot(snapshot: TrackerSnapshot, snapshot_file: str) -> None:
    """Writes the snapshot as JSON for downstream schema generation."""
    output_dir = os.path.dirname(snapshot_file)
    if output_dir and not os.path.exists(output_dir):
        os.makedirs(output_dir)
    with open(snapshot_file, 'w', encoding='utf-8') as f:
        json.dump(snapshot.to_dict(), f, indent=2)


def load_snapshot(snapshot_file: str) -> TrackerSnapshot:
    with open(snapshot_file, 'r', encoding='utf-8') as f:
        return TrackerSnapshot.from_dict(json.load(f))
