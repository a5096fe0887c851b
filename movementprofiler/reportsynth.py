"""Builds the analysis report from a tracker snapshot.

``synthesize`` turns a TrackerSnapshot into an immutable AnalysisReport:
distribution tables, per-field statistics grouped by top-level property,
lookup table candidates, high-null-rate fields and the default-value SQL.
``render`` formats that report as markdown-like text through the
``reportsynth/report.md.jinja`` template.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from movementprofiler.common import display_path, process_template, top_level_property, write_text
from movementprofiler.fieldobserver import ARRAY, NUMBER, OBJECT, STRING, FieldSnapshot
from movementprofiler.schematracker import TrackerSnapshot

REPORT_TITLE = 'Team Movement Data Analysis Report'

# Samples shown per lookup candidate
DISPLAY_SAMPLE_VALUES = 10

# Candidates with more stored samples than this get no sample list
MAX_CANDIDATE_VALUES = 100

# Candidates listed as potential lookup tables, constant fields excluded
LOOKUP_TABLE_MIN_VALUES = 2
LOOKUP_TABLE_MAX_VALUES = 30

HIGH_NULL_RATE = 0.95
MAX_HIGH_NULL_FIELDS = 20
MAX_LISTED_ERRORS = 20

LOOKUP_NAME_PATTERN = re.compile(r'(type|name|status|role|group|code|flag|banner|brand)s?\b', re.IGNORECASE)

# (table, columns, values) for the 'Unknown' seed row of each lookup table
DEFAULT_LOOKUP_ROWS = (
    ('lookup.movement_status', ('status_name',), ('Unknown',)),
    ('lookup.movement_type', ('type_name',), ('Unknown',)),
    ('lookup.employee_group', ('group_name',), ('Unknown',)),
    ('lookup.employee_subgroup', ('subgroup_name',), ('Unknown',)),
    ('lookup.banner', ('banner_name',), ('Unknown',)),
    ('lookup.brand', ('brand_code', 'brand_name', 'brand_display_name'), ('UNK', 'Unknown', 'Unknown')),
    ('lookup.department', ('department_code', 'department_name'), ('UNK', 'Unknown')),
    ('lookup.cost_centre', ('cost_centre_code', 'cost_centre_name'), ('UNK', 'Unknown')),
    ('lookup.role_type', ('role_name',), ('Unknown',)),
    ('lookup.job_role', ('job_role_name',), ('Unknown',)),
    ('lookup.mutual_flag', ('flag_name',), ('Unknown',)),
    ('lookup.break_type', ('break_name',), ('Unknown',)),
    ('lookup.history_event_type', ('event_type_name',), ('Unknown',)),
)


def default_value_statements() -> Tuple[str, ...]:
    """Idempotent inserts of the 'Unknown' row into every lookup table."""
    statements = []
    for table, columns, values in DEFAULT_LOOKUP_ROWS:
        column_list = ', '.join(columns)
        value_list = ', '.join(f"'{v}'" for v in values)
        statements.append(f"INSERT INTO {table} ({column_list}) VALUES ({value_list}) ON CONFLICT DO NOTHING;")
    return tuple(statements)


def is_lookup_candidate(path: str, stats: FieldSnapshot) -> bool:
    """
    A lookup candidate is a string field, never an array or object, whose
    name sounds categorical and which has between 1 and 100 distinct values.
    """
    kinds = stats.value_kinds
    if STRING not in kinds or ARRAY in kinds or OBJECT in kinds:
        return False
    if not LOOKUP_NAME_PATTERN.search(display_path(path)):
        return False
    return 0 < len(stats.sample_values) <= MAX_CANDIDATE_VALUES


@dataclass(frozen=True)
class FieldReport:
    path: str
    display_path: str
    stats: FieldSnapshot
    shown_samples: Tuple[str, ...]
    hidden_sample_count: int
    is_lookup_candidate: bool

    @property
    def data_types(self) -> str:
        return ', '.join(sorted(self.stats.value_kinds))

    @property
    def has_strings(self) -> bool:
        return STRING in self.stats.value_kinds

    @property
    def has_numbers(self) -> bool:
        return NUMBER in self.stats.value_kinds

    @property
    def numeric_range(self) -> str:
        if self.stats.min_numeric is None:
            return 'n/a'
        return f"{_format_number(self.stats.min_numeric)} to {_format_number(self.stats.max_numeric)}"


@dataclass(frozen=True)
class Distribution:
    field_name: str
    title: str
    entries: Tuple[Tuple[str, int], ...]


@dataclass(frozen=True)
class AnalysisReport:
    """Immutable result of report synthesis."""
    title: str
    generated_at: datetime
    total_files: int
    error_count: int
    distributions: Tuple[Distribution, ...]
    field_groups: Tuple[Tuple[str, Tuple[FieldReport, ...]], ...]
    errors: Tuple[str, ...]
    remaining_errors: int
    high_null_fields: Tuple[Tuple[str, float], ...]
    lookup_candidates: Tuple[Tuple[str, int], ...]
    default_sql: Tuple[str, ...]

    def field(self, path: str) -> Optional[FieldReport]:
        """Finds a field report by full or display path."""
        for _, fields in self.field_groups:
            for field_report in fields:
                if path in (field_report.path, field_report.display_path):
                    return field_report
        return None


def _format_number(value: Optional[Decimal]) -> str:
    if value is None:
        return ''
    return str(value)


class ReportSynthesizer:
    """Synthesizes and renders reports from immutable snapshots."""

    def __init__(self, title: str = REPORT_TITLE,
                 display_sample_values: int = DISPLAY_SAMPLE_VALUES,
                 lookup_table_max_values: int = LOOKUP_TABLE_MAX_VALUES,
                 high_null_rate: float = HIGH_NULL_RATE):
        self.title = title
        self.display_sample_values = display_sample_values
        self.lookup_table_max_values = lookup_table_max_values
        self.high_null_rate = high_null_rate

    def synthesize(self, snapshot: TrackerSnapshot, generated_at: Optional[datetime] = None) -> AnalysisReport:
        return AnalysisReport(
            title=self.title,
            generated_at=generated_at or datetime.now(),
            total_files=snapshot.total_files,
            error_count=len(snapshot.errors),
            distributions=self._distributions(snapshot),
            field_groups=self._field_groups(snapshot),
            errors=tuple(snapshot.errors[:MAX_LISTED_ERRORS]),
            remaining_errors=max(0, len(snapshot.errors) - MAX_LISTED_ERRORS),
            high_null_fields=self._high_null_fields(snapshot),
            lookup_candidates=self._lookup_candidates(snapshot),
            default_sql=default_value_statements(),
        )

    def render(self, snapshot: TrackerSnapshot, generated_at: Optional[datetime] = None) -> str:
        return self.render_report(self.synthesize(snapshot, generated_at))

    def render_report(self, report: AnalysisReport) -> str:
        return process_template("reportsynth/report.md.jinja", report=report)

    def _distributions(self, snapshot: TrackerSnapshot) -> Tuple[Distribution, ...]:
        result = []
        for field_name, title in snapshot.headline_fields.items():
            counts = snapshot.distributions.get(field_name, {})
            entries = tuple(sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])))
            result.append(Distribution(field_name, title, entries))
        return tuple(result)

    def _field_report(self, path: str, stats: FieldSnapshot) -> FieldReport:
        candidate = is_lookup_candidate(path, stats)
        shown: Tuple[str, ...] = ()
        hidden = 0
        if candidate:
            shown = stats.sample_values[:self.display_sample_values]
            hidden = len(stats.sample_values) - len(shown)
        return FieldReport(path, display_path(path), stats, shown, hidden, candidate)

    def _field_groups(self, snapshot: TrackerSnapshot) -> Tuple[Tuple[str, Tuple[FieldReport, ...]], ...]:
        groups: Dict[str, List[FieldReport]] = {}
        for path, stats in snapshot.fields.items():
            groups.setdefault(top_level_property(path), []).append(self._field_report(path, stats))
        return tuple(
            (name, tuple(sorted(fields, key=lambda f: f.path)))
            for name, fields in sorted(groups.items())
        )

    def _high_null_fields(self, snapshot: TrackerSnapshot) -> Tuple[Tuple[str, float], ...]:
        fields = [
            (display_path(path), stats.null_rate)
            for path, stats in snapshot.fields.items()
            if stats.total_occurrences > 0 and stats.null_rate > self.high_null_rate
        ]
        fields.sort(key=lambda f: (-f[1], f[0]))
        return tuple(fields[:MAX_HIGH_NULL_FIELDS])

    def _lookup_candidates(self, snapshot: TrackerSnapshot) -> Tuple[Tuple[str, int], ...]:
        candidates = [
            (display_path(path), len(stats.sample_values))
            for path, stats in snapshot.fields.items()
            if is_lookup_candidate(path, stats)
            and LOOKUP_TABLE_MIN_VALUES <= len(stats.sample_values) <= self.lookup_table_max_values
        ]
        candidates.sort(key=lambda c: (c[1], c[0]))
        return tuple(candidates)


def render_report(snapshot: TrackerSnapshot, generated_at: Optional[datetime] = None) -> str:
    """Renders the report text for a snapshot."""
    return ReportSynthesizer().render(snapshot, generated_at)


def write_report(snapshot: TrackerSnapshot, report_file: str, generated_at: Optional[datetime] = None) -> None:
    """Renders the report for a snapshot and writes it to ``report_file``."""
    write_text(report_file, render_report(snapshot, generated_at))
