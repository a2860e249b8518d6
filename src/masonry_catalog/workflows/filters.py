"""Filter-list descriptors handed to the host UI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from ..core.keys import K_KIND, K_NAME, K_OPTIONS, K_SELECTED
from .models import FacetOption

HEADER = "header"
SEPARATOR = "separator"
SELECT = "select"
MULTISELECT = "multiselect"


@dataclass(frozen=True, slots=True)
class FilterGroup:
    kind: str
    name: str = ""
    options: Tuple[FacetOption, ...] = ()
    selected: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {K_KIND: self.kind, K_NAME: self.name}
        if self.kind in {SELECT, MULTISELECT}:
            payload[K_OPTIONS] = [option.to_dict() for option in self.options]
            payload[K_SELECTED] = list(self.selected)
        return payload


def header(text: str) -> FilterGroup:
    return FilterGroup(HEADER, text)


def separator() -> FilterGroup:
    return FilterGroup(SEPARATOR)


def select(name: str, options: Sequence[FacetOption], current: Optional[str] = None) -> FilterGroup:
    values = [option.value for option in options]
    chosen = current if current in values else (values[0] if values else None)
    return FilterGroup(SELECT, name, tuple(options), (chosen,) if chosen is not None else ())


def multiselect(name: str, options: Sequence[FacetOption], current: Iterable[str] = ()) -> FilterGroup:
    # Vocabulary order, so the selection is stable across rebuilds.
    wanted = set(current)
    chosen = tuple(option.value for option in options if option.value in wanted)
    return FilterGroup(MULTISELECT, name, tuple(options), chosen)


def vocabulary_or_hint(
    name: str,
    options: Sequence[FacetOption],
    hint: str,
    current: Iterable[str] = (),
    *,
    single: bool = False,
) -> FilterGroup:
    """The vocabulary as a selectable group, or a retry hint while it is empty."""

    if not options:
        return header(hint)
    if single:
        current_values = list(current)
        return select(name, options, current_values[0] if current_values else None)
    return multiselect(name, options, current)


__all__ = [
    "HEADER",
    "SEPARATOR",
    "SELECT",
    "MULTISELECT",
    "FilterGroup",
    "header",
    "separator",
    "select",
    "multiselect",
    "vocabulary_or_hint",
]
