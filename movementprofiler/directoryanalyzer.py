"""Analyzes a directory of JSON movement documents.

Files are discovered recursively, sorted and split into fixed-size batches.
Batches run one after another; inside a batch a bounded thread pool parses
the files and feeds them into a shared SchemaTracker. Only one batch of
parsed documents is in flight at any time.

A file that cannot be read or parsed is recorded in the error list and
skipped. The only failure that stops a run is a missing input directory.
"""

import json
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from movementprofiler.common import MovementProfilerError
from movementprofiler.lookupcollector import LookupValueCollector
from movementprofiler.schematracker import ROOT_PATH, AtomicCounter, SchemaTracker, TrackerSnapshot

logger = logging.getLogger(__name__)

DEFAULT_FILE_PATTERN = 'tms_team_movements_team_movement_*.json'

# Files per batch; bounds the number of parsed documents held at once
BATCH_SIZE = 100

# Log a progress line every this many processed files
PROGRESS_INTERVAL = 500

ProgressCallback = Callable[[int, int], None]


class DirectoryNotFound(MovementProfilerError):
    """Raised when the input directory does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Directory not found: {path}", context='analyze')


def default_max_workers() -> int:
    return 2 * (os.cpu_count() or 1)


def _reject_nonstandard_constant(value: str):
    raise ValueError(f"Invalid JSON constant: {value}")


def parse_document(text: str) -> Any:
    """Parses one JSON document. Every number, integer or not, becomes a Decimal."""
    return json.loads(text, parse_float=Decimal, parse_int=Decimal,
                      parse_constant=_reject_nonstandard_constant)


def discover_files(directory_path: str, filename_pattern: str = DEFAULT_FILE_PATTERN) -> List[str]:
    """Returns every file below ``directory_path`` whose name matches the glob, sorted."""
    if not os.path.isdir(directory_path):
        raise DirectoryNotFound(directory_path)
    return sorted(str(p) for p in Path(directory_path).rglob(filename_pattern) if p.is_file())


class ErrorLog:
    """Thread-safe list of per-file error messages."""

    def __init__(self):
        self._errors: List[str] = []
        self._lock = threading.Lock()

    def add(self, message: str) -> None:
        with self._lock:
            self._errors.append(message)

    def snapshot(self) -> List[str]:
        with self._lock:
            return list(self._errors)

    def __len__(self) -> int:
        with self._lock:
            return len(self._errors)


class DirectoryAnalyzer:
    """Drives one analysis run over a directory of JSON files."""

    def __init__(self,
                 tracker: Optional[SchemaTracker] = None,
                 batch_size: int = BATCH_SIZE,
                 max_workers: Optional[int] = None,
                 progress_interval: int = PROGRESS_INTERVAL,
                 progress_callback: Optional[ProgressCallback] = None,
                 lookup_collector: Optional[LookupValueCollector] = None,
                 headline_fields: Optional[Dict[str, str]] = None):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.tracker = tracker if tracker is not None else SchemaTracker(headline_fields=headline_fields)
        self.batch_size = batch_size
        self.max_workers = max_workers or default_max_workers()
        self.progress_interval = progress_interval
        self.progress_callback = progress_callback
        self.lookup_collector = lookup_collector
        self.errors = ErrorLog()
        self._processed = AtomicCounter()
        self._total = 0

    def analyze(self, directory_path: str, filename_pattern: str = DEFAULT_FILE_PATTERN) -> TrackerSnapshot:
        """Processes every matching file and returns the final snapshot.

        Raises:
            DirectoryNotFound: if ``directory_path`` does not exist.
        """
        files = discover_files(directory_path, filename_pattern)
        self._total = len(files)
        logger.info("Found %d files matching %s in %s", self._total, filename_pattern, directory_path)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for start in range(0, len(files), self.batch_size):
                batch = files[start:start + self.batch_size]
                # list() joins the whole batch before the next one starts
                list(executor.map(self._process_and_count, batch))

        logger.info("Processed %d files with %d errors", self._processed.value, len(self.errors))
        return self.snapshot()

    def snapshot(self) -> TrackerSnapshot:
        return self.tracker.snapshot(sorted(self.errors.snapshot()))

    def _process_and_count(self, file_path: str) -> None:
        self.process_file(file_path)
        processed = self._processed.increment()
        if self.progress_interval > 0 and processed % self.progress_interval == 0:
            logger.info("Processed %d of %d files", processed, self._total)
            if self.progress_callback is not None:
                self.progress_callback(processed, self._total)

    def process_file(self, file_path: str) -> bool:
        """Parses and tracks one file. Returns False when the file was recorded as an error."""
        try:
            with open(file_path, 'r', encoding='utf-8-sig') as f:
                document = parse_document(f.read())
        except (OSError, ValueError, RecursionError) as e:
            message = f"{os.path.basename(file_path)}: {e}"
            logger.debug("Skipping %s", message)
            self.errors.add(message)
            return False

        self.tracker.add_file()
        self.tracker.track(ROOT_PATH, document)
        self.tracker.count_headlines(document)
        if self.lookup_collector is not None:
            self.lookup_collector.collect(document)
        return True


def analyze_directory(directory_path: str,
                      filename_pattern: str = DEFAULT_FILE_PATTERN,
                      batch_size: int = BATCH_SIZE,
                      max_workers: Optional[int] = None,
                      progress_callback: Optional[ProgressCallback] = None,
                      lookup_collector: Optional[LookupValueCollector] = None) -> TrackerSnapshot:
    """Runs a fresh analysis over ``directory_path`` and returns its snapshot."""
    analyzer = DirectoryAnalyzer(batch_size=batch_size, max_workers=max_workers,
                                 progress_callback=progress_callback, lookup_collector=lookup_collector)
    return analyzer.analyze(directory_path, filename_pattern)
