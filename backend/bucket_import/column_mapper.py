"""
Column mapping between CSV headers and transaction fields.

The mapping is an immutable value. Every edit goes through reduce_mapping,
which returns a new state, so the same logic drives the HTTP API and the
tests without any UI framework.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .errors import UnknownFieldError

# Canonical field key and display label, in display order
TRANSACTION_FIELDS: List[Tuple[str, str]] = [
    ("value", "Value (Float)"),
    ("currency", "Currency"),
    ("counterpart", "Counterpart (String?)"),
    ("date", "Date (DateTime)"),
    ("time", "Time (Optional)"),
    ("description", "Description (String?)"),
    ("externalId", "External ID (String?)"),
]

FIELD_KEYS = [key for key, _ in TRANSACTION_FIELDS]

PREVIEW_ROWS = 5

GERMAN_NUMBER = re.compile(r"^-?\d{1,3}(\.\d{3})*,\d+$|^-?\d+,\d+$")


@dataclass(frozen=True)
class MappingState:
    """Ordered field -> CSV header associations. None means "not mapped"."""

    entries: Tuple[Tuple[str, Optional[str]], ...] = ()

    def get(self, field_name: str) -> Optional[str]:
        for name, header in self.entries:
            if name == field_name:
                return header
        return None

    def as_dict(self) -> Dict[str, Optional[str]]:
        return dict(self.entries)

    def mapped(self) -> List[Tuple[str, str]]:
        """Entries that point at a non-empty header, in mapping order."""
        return [(name, header) for name, header in self.entries if header]

    @classmethod
    def from_pairs(cls, pairs: Iterable[Sequence[Optional[str]]]) -> "MappingState":
        return cls(entries=tuple((name, header) for name, header in pairs))


@dataclass(frozen=True)
class SetMapping:
    field_name: str
    csv_header: Optional[str]


@dataclass(frozen=True)
class AutoMap:
    headers: Tuple[str, ...]


@dataclass(frozen=True)
class ClearMapping:
    pass


MappingAction = Union[SetMapping, AutoMap, ClearMapping]


def auto_map(headers: Sequence[str]) -> MappingState:
    """
    Build the initial mapping by matching header names to field keys.

    A field is mapped to the first header equal to its key, ignoring case.
    Fields without a matching header are left out.
    """
    entries = []
    for key in FIELD_KEYS:
        found = next((h for h in headers if h.lower() == key.lower()), None)
        if found is not None:
            entries.append((key, found))
    return MappingState(entries=tuple(entries))


def set_mapping(
    state: MappingState, field_name: str, csv_header: Optional[str]
) -> MappingState:
    """
    Assign a header to a field, replacing any earlier association.

    The header is not checked against the current document. A field that is
    already present keeps its position; a new field is appended.

    Raises:
        UnknownFieldError: if field_name is not a transaction field
    """
    if field_name not in FIELD_KEYS:
        raise UnknownFieldError(f"Unknown transaction field: {field_name}")

    entries = list(state.entries)
    for idx, (name, _) in enumerate(entries):
        if name == field_name:
            entries[idx] = (field_name, csv_header)
            break
    else:
        entries.append((field_name, csv_header))
    return MappingState(entries=tuple(entries))


def reduce_mapping(state: MappingState, action: MappingAction) -> MappingState:
    """Apply a mapping action and return the new state."""
    if isinstance(action, SetMapping):
        return set_mapping(state, action.field_name, action.csv_header)
    if isinstance(action, AutoMap):
        return auto_map(action.headers)
    if isinstance(action, ClearMapping):
        return MappingState()
    raise TypeError(f"Unsupported mapping action: {action!r}")


def coerce_cell(value: str) -> Union[str, float]:
    """
    Convert German-formatted numbers like "1.234,56" to float for display.

    Anything else is returned unchanged.
    """
    if isinstance(value, str) and GERMAN_NUMBER.match(value):
        return float(value.replace(".", "").replace(",", "."))
    return value


def mapped_preview(
    rows: Sequence[Dict[str, str]], state: MappingState, limit: int = PREVIEW_ROWS
) -> List[Dict[str, Union[str, float]]]:
    """
    Project the first rows onto the mapped transaction fields.

    Args:
        rows: Parsed CSV rows
        state: Current mapping
        limit: Number of rows to include

    Returns:
        One dict per row keyed by field name, values coerced for display
    """
    mapped = state.mapped()
    preview = []
    for row in rows[:limit]:
        preview.append(
            {name: coerce_cell(row.get(header, "")) for name, header in mapped}
        )
    return preview
