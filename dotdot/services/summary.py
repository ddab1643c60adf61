"""Aggregate per-item outcome labels into a one-line summary."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence

__all__ = ["count_statuses", "summarize"]


def count_statuses(statuses: Iterable[str]) -> Counter[str]:
    return Counter(statuses)


def summarize(
    statuses: Iterable[str],
    order: Sequence[str],
    *,
    display: Mapping[str, str] | None = None,
    notes: Mapping[str, str] | None = None,
) -> str:
    """Build `Done: 2 cloned, 1 failed` from outcome labels.

    Only non-zero counts are listed, in `order`. `display` renames labels
    for the summary line (e.g. `checked-out` -> `checked out`). `notes` adds a
    parenthesized detail after a label: `3 pulled (1 diverged)`.
    """
    counts = count_statuses(statuses)
    names = display or {}
    details = notes or {}
    parts: list[str] = []
    for label in order:
        if not counts[label]:
            continue
        part = f"{counts[label]} {names.get(label, label)}"
        if label in details:
            part += f" ({details[label]})"
        parts.append(part)
    if not parts:
        return "Done: nothing to do"
    return f"Done: {', '.join(parts)}"
