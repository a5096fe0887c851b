"""Per-field statistics accumulator.

A FieldObserver collects everything the report and the downstream schema
builder need to know about one field path:

- how often the field occurred and how often it was null or empty
- which JSON value kinds were seen (string, number, boolean, ...)
- a bounded, case-insensitively de-duplicated set of string samples
- the longest string seen
- the numeric range, as ``decimal.Decimal``
"""

import threading
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, FrozenSet, Optional, Tuple

STRING = 'string'
NUMBER = 'number'
BOOLEAN = 'boolean'
ARRAY = 'array'
OBJECT = 'object'
NULL = 'null'
LARGE_NUMBER = 'large-number'

VALUE_KINDS = (STRING, NUMBER, BOOLEAN, ARRAY, OBJECT, NULL, LARGE_NUMBER)

# Stored samples per field
MAX_SAMPLE_VALUES = 100

# Largest magnitude a 96-bit scaled decimal can hold
DECIMAL_MAX = Decimal('79228162514264337593543950335')


def value_kind(value: Any) -> str:
    """Returns the JSON kind of a parsed value."""
    if value is None:
        return NULL
    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, str):
        return STRING
    if isinstance(value, (int, float, Decimal)):
        return NUMBER
    if isinstance(value, (list, tuple)):
        return ARRAY
    if isinstance(value, dict):
        return OBJECT
    raise TypeError(f"Unsupported JSON value type: {type(value).__name__}")


def to_decimal(value: Any) -> Optional[Decimal]:
    """Converts a JSON number to a Decimal, or None when it does not fit."""
    try:
        if isinstance(value, Decimal):
            number = value
        elif isinstance(value, float):
            number = Decimal(repr(value))
        else:
            number = Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not number.is_finite() or abs(number) > DECIMAL_MAX:
        return None
    return number


@dataclass(frozen=True)
class FieldSnapshot:
    """Immutable copy of a FieldObserver's state."""
    total_occurrences: int
    null_or_empty_count: int
    value_kinds: FrozenSet[str]
    sample_values: Tuple[str, ...]
    max_length: int
    min_numeric: Optional[Decimal]
    max_numeric: Optional[Decimal]

    @property
    def null_rate(self) -> float:
        if self.total_occurrences == 0:
            return 0.0
        return self.null_or_empty_count / self.total_occurrences

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_occurrences': self.total_occurrences,
            'null_or_empty_count': self.null_or_empty_count,
            'value_kinds': sorted(self.value_kinds),
            'sample_values': list(self.sample_values),
            'max_length': self.max_length,
            'min_numeric': None if self.min_numeric is None else str(self.min_numeric),
            'max_numeric': None if self.max_numeric is None else str(self.max_numeric),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FieldSnapshot':
        min_numeric = data.get('min_numeric')
        max_numeric = data.get('max_numeric')
        return cls(
            total_occurrences=int(data.get('total_occurrences', 0)),
            null_or_empty_count=int(data.get('null_or_empty_count', 0)),
            value_kinds=frozenset(data.get('value_kinds', [])),
            sample_values=tuple(data.get('sample_values', [])),
            max_length=int(data.get('max_length', 0)),
            min_numeric=None if min_numeric is None else Decimal(min_numeric),
            max_numeric=None if max_numeric is None else Decimal(max_numeric),
        )


class FieldObserver:
    """Accumulates statistics for a single field path.

    ``observe`` is safe to call from several threads at once and never
    raises: a number that cannot be held as a decimal is recorded under the
    ``large-number`` kind instead of widening the numeric range.
    """

    def __init__(self, max_sample_values: int = MAX_SAMPLE_VALUES):
        self.max_sample_values = max_sample_values
        self.total_occurrences = 0
        self.null_or_empty_count = 0
        self.value_kinds: set[str] = set()
        # casefolded key -> first spelling seen
        self.sample_values: Dict[str, str] = {}
        self.max_length = 0
        self.min_numeric: Optional[Decimal] = None
        self.max_numeric: Optional[Decimal] = None
        self._lock = threading.Lock()

    def observe(self, value: Any) -> None:
        """Records one observed value."""
        kind = value_kind(value)
        with self._lock:
            self.total_occurrences += 1
            self.value_kinds.add(kind)
            if kind == NULL:
                self.null_or_empty_count += 1
            elif kind == STRING:
                self._observe_string(str(value))
            elif kind == NUMBER:
                self._observe_number(value)

    def _observe_string(self, value: str) -> None:
        if value == '':
            self.null_or_empty_count += 1
            return
        if len(value) > self.max_length:
            self.max_length = len(value)
        if len(self.sample_values) >= self.max_sample_values:
            return
        trimmed = value.strip()
        if trimmed:
            self.sample_values.setdefault(trimmed.casefold(), trimmed)

    def _observe_number(self, value: Any) -> None:
        number = to_decimal(value)
        if number is None:
            self.value_kinds.add(LARGE_NUMBER)
            return
        if self.min_numeric is None or number < self.min_numeric:
            self.min_numeric = number
        if self.max_numeric is None or number > self.max_numeric:
            self.max_numeric = number

    def snapshot(self) -> FieldSnapshot:
        with self._lock:
            return FieldSnapshot(
                total_occurrences=self.total_occurrences,
                null_or_empty_count=self.null_or_empty_count,
                value_kinds=frozenset(self.value_kinds),
                sample_values=tuple(self.sample_values.values()),
                max_length=self.max_length,
                min_numeric=self.min_numeric,
                max_numeric=self.max_numeric,
            )
