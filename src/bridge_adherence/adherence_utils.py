"""Adherence percentage over one or more day-keyed schedules."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

COMPLIANT_STATES: frozenset[str] = frozenset({"completed"})
NONCOMPLIANT_STATES: frozenset[str] = frozenset({"abandoned", "expired", "declined"})


def calculate_adherence_percentage(
    streams: Iterable[Mapping[int, Sequence[Any]]],
) -> int:
    """Percent of decided windows that were completed, floored to an int.

    Each stream maps a day key to entries exposing ``time_windows`` (a dict of
    windows with a ``state``). Windows that are neither compliant nor
    noncompliant (not yet available, started, not applicable, ...) don't count.
    With no decided windows at all the participant is 100% adherent.
    """
    compliant = 0
    noncompliant = 0
    for by_day in streams:
        for entries in by_day.values():
            for entry in entries:
                for window in entry.time_windows.values():
                    if window.state in COMPLIANT_STATES:
                        compliant += 1
                    elif window.state in NONCOMPLIANT_STATES:
                        noncompliant += 1

    total = compliant + noncompliant
    if total == 0:
        return 100
    return (compliant * 100) // total
