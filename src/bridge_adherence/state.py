"""Adherence state: the participant-specific inputs of one report generation."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def _zone_for(client_time_zone: str | None) -> ZoneInfo | None:
    if client_time_zone is None:
        return None
    try:
        return ZoneInfo(client_time_zone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(
            f"Invalid time zone '{client_time_zone}'. Use IANA time zone identifiers."
        ) from None


def _local_date(ts: datetime, zone: ZoneInfo | None) -> date:
    if zone is None or ts.tzinfo is None:
        return ts.date()
    return ts.astimezone(zone).date()


@dataclass(frozen=True)
class AdherenceState:
    """Current time, time zone and elapsed days for one participant.

    ``days_since_event`` holds the number of days since each anchor event;
    an event that is missing or negative has not happened yet for this
    participant.
    """

    now: datetime
    client_time_zone: str | None = None
    days_since_event: Mapping[str, int] = field(default_factory=dict)
    show_active: bool = False

    def __post_init__(self) -> None:
        _zone_for(self.client_time_zone)

    @classmethod
    def from_event_timestamps(
        cls,
        now: datetime,
        client_time_zone: str | None,
        events: Mapping[str, datetime],
        *,
        show_active: bool = False,
    ) -> AdherenceState:
        """Build a state from raw event timestamps, counting calendar days in the client zone."""
        zone = _zone_for(client_time_zone)
        today = _local_date(now, zone)
        days = {
            event_id: (today - _local_date(ts, zone)).days
            for event_id, ts in events.items()
        }
        return cls(
            now=now,
            client_time_zone=client_time_zone,
            days_since_event=days,
            show_active=show_active,
        )

    @property
    def today(self) -> date:
        return _local_date(self.now, _zone_for(self.client_time_zone))

    def days_since_event_by_id(self, event_id: str) -> int | None:
        return self.days_since_event.get(event_id)

    def with_show_active(self, show_active: bool) -> AdherenceState:
        return replace(self, show_active=show_active)
