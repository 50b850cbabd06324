"""Declarative record filters.

A `FilterDefinition` names a record field, an operator and a value. Filters
combine with AND logic: a record is kept only when every filter matches.
Besides the `EnrichedRecord` fields, the derived fields `age_cohort` and
`pledge_bin` can be filtered on.

`FilterSet` is an immutable collection of definitions; every operation returns
a new set, so a dashboard can keep a history of filter states.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Iterator

from pydantic import BaseModel, ConfigDict

from pledge_analytics.enrich.classify import age_cohort, pledge_bin
from pledge_analytics.models import EnrichedRecord

DERIVED_FIELDS = ("age_cohort", "pledge_bin")


class FilterOperator(str, Enum):
    EQUALS = "equals"
    IN = "in"
    BETWEEN = "between"
    GT = "gt"
    LT = "lt"
    GTE = "gte"
    LTE = "lte"


class FilterDefinition(BaseModel):
    """One filter, as produced by a chart click or a filter menu.

    Attributes:
        id: Unique identifier (e.g. ``"age_cohort_40-49"``).
        field: Record field to test.
        operator: Comparison to apply.
        value: Scalar, list of accepted values (``in``) or ``[low, high]``
            (``between``, both ends inclusive).
        label: Human-readable description (e.g. ``"Age: 40-49"``).
        category: Grouping used by the presentation layer (e.g. ``"Age"``).
    """
    model_config = ConfigDict(extra="forbid", frozen=True)
    id: str
    field: str
    operator: FilterOperator
    value: str | float | list[str] | list[float]
    label: str = ""
    category: str = ""


def field_value(record: EnrichedRecord, field: str) -> Any:
    """Return a record field, resolving the derived cohort and bin fields.

    Raises:
        ValueError: if `field` is neither a record field nor a derived field.
    """
    if field == "age_cohort":
        return age_cohort(record.age).value
    if field == "pledge_bin":
        bin_ = pledge_bin(record.pledge_current)
        return bin_.value if bin_ is not None else None
    if field not in EnrichedRecord.model_fields:
        raise ValueError(f"Unknown filter field: {field}")

    value = getattr(record, field)
    return value.value if isinstance(value, Enum) else value


def _as_number(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def matches(record: EnrichedRecord, definition: FilterDefinition) -> bool:
    """True when `record` passes `definition`."""
    value = field_value(record, definition.field)
    op = definition.operator
    target = definition.value

    if op is FilterOperator.EQUALS:
        return value == target
    if op is FilterOperator.IN:
        if not isinstance(target, list):
            return False
        number = _as_number(value)
        if number is not None and not isinstance(value, str):
            return number in {_as_number(t) for t in target}
        return str(value) in {str(t) for t in target}

    number = _as_number(value)
    if number is None:
        return False

    if op is FilterOperator.BETWEEN:
        if not isinstance(target, list) or len(target) != 2:
            return False
        low, high = (float(t) for t in target)
        return low <= number <= high

    if isinstance(target, list):
        return False
    bound = float(target)
    if op is FilterOperator.GT:
        return number > bound
    if op is FilterOperator.LT:
        return number < bound
    if op is FilterOperator.GTE:
        return number >= bound
    return number <= bound


def apply_filters(
    records: Iterable[EnrichedRecord],
    filters: Iterable[FilterDefinition],
) -> list[EnrichedRecord]:
    """Return the records matching every filter (all records when none)."""
    filters = list(filters)
    return [r for r in records if all(matches(r, f) for f in filters)]


class FilterSet:
    """Immutable ordered collection of filter definitions."""

    def __init__(self, filters: Iterable[FilterDefinition] = ()) -> None:
        self._filters: tuple[FilterDefinition, ...] = tuple(filters)

    @property
    def filters(self) -> tuple[FilterDefinition, ...]:
        return self._filters

    def __len__(self) -> int:
        return len(self._filters)

    def __iter__(self) -> Iterator[FilterDefinition]:
        return iter(self._filters)

    def add(self, definition: FilterDefinition) -> FilterSet:
        """Add a filter, replacing an existing one with the same id in place."""
        if self.is_active(definition.id):
            return FilterSet(definition if f.id == definition.id else f for f in self._filters)
        return FilterSet(self._filters + (definition,))

    def remove(self, filter_id: str) -> FilterSet:
        return FilterSet(f for f in self._filters if f.id != filter_id)

    def toggle(self, definition: FilterDefinition) -> FilterSet:
        """Remove the filter if active, otherwise add it (chart-click behavior)."""
        if self.is_active(definition.id):
            return self.remove(definition.id)
        return FilterSet(self._filters + (definition,))

    def clear_field(self, field: str) -> FilterSet:
        return FilterSet(f for f in self._filters if f.field != field)

    def is_active(self, filter_id: str) -> bool:
        return any(f.id == filter_id for f in self._filters)

    def for_field(self, field: str) -> list[FilterDefinition]:
        return [f for f in self._filters if f.field == field]

    def apply(self, records: Iterable[EnrichedRecord]) -> list[EnrichedRecord]:
        return apply_filters(records, self._filters)
