"""
Tag catalogue and selection helpers for post flags.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class Flag:
    value: str
    label: str
    icon: str

    def as_dict(self) -> dict:
        return {"value": self.value, "label": self.label, "icon": self.icon}


AVAILABLE_FLAGS: tuple[Flag, ...] = (
    Flag("recipe", "Recipe", "🍽️"),
    Flag("tip", "Tip", "💡"),
    Flag("question", "Question", "❓"),
    Flag("review", "Review", "⭐"),
    Flag("beginner", "Beginner", "🌱"),
)

_FLAGS_BY_VALUE = {flag.value: flag for flag in AVAILABLE_FLAGS}


def is_known_flag(value: str) -> bool:
    return value in _FLAGS_BY_VALUE


def toggle_flag(selected: Iterable[str], value: str) -> list[str]:
    """Return a new selection with ``value`` removed if present, else appended."""
    current = list(selected)
    if value in current:
        return [flag for flag in current if flag != value]
    return current + [value]


def clear_flags() -> list[str]:
    return []


def dedupe_flags(flags: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for flag in flags:
        if flag not in seen:
            seen.add(flag)
            result.append(flag)
    return result


def display_flags(flags: Iterable[str]) -> list[Flag]:
    """Catalogue entries for ``flags`` in the given order, skipping unknown values."""
    return [_FLAGS_BY_VALUE[value] for value in flags if value in _FLAGS_BY_VALUE]


def describe_selection(selected: Iterable[str]) -> Optional[str]:
    labels = [flag.label for flag in display_flags(selected)]
    if not labels:
        return None
    return "Showing posts with: " + ", ".join(labels)
