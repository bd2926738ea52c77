"""CLI entry point for rendering a weekly adherence report from precomputed streams."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from typing import Any, Sequence

from pydantic import BaseModel, Field

from .config import Config
from .eventstream import EventStream, EventStreamAdherenceReport, StaticEventStreamSource
from .logging import setup_logging
from .state import AdherenceState
from .weekly_report_generator import WeeklyAdherenceReportGenerator

logger = logging.getLogger(__name__)


class StateInput(BaseModel):
    now: datetime
    client_time_zone: str | None = None
    days_since_event: dict[str, int] = Field(default_factory=dict)
    event_timestamps: dict[str, datetime] = Field(default_factory=dict)

    def to_state(self) -> AdherenceState:
        if self.event_timestamps:
            state = AdherenceState.from_event_timestamps(
                self.now, self.client_time_zone, self.event_timestamps
            )
            # Explicit day counts win over derived ones.
            days = {**state.days_since_event, **self.days_since_event}
            return AdherenceState(
                now=self.now,
                client_time_zone=self.client_time_zone,
                days_since_event=days,
            )
        return AdherenceState(
            now=self.now,
            client_time_zone=self.client_time_zone,
            days_since_event=dict(self.days_since_event),
        )


class ReportRequest(BaseModel):
    state: StateInput
    streams: list[EventStream] = Field(default_factory=list)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bridge-adherence-report",
        description="Render the weekly adherence report for precomputed event streams.",
    )
    parser.add_argument(
        "input",
        nargs="?",
        default="-",
        help="JSON request file with 'state' and 'streams' (default: stdin).",
    )
    parser.add_argument(
        "--indent",
        default=2,
        type=int,
        help="Indentation of the JSON output.",
    )
    return parser


def _read_request(path: str) -> dict[str, Any]:
    if path == "-":
        return json.load(sys.stdin)
    with open(path) as f:
        return json.load(f)


def _run(args: argparse.Namespace) -> int:
    try:
        request = ReportRequest.model_validate(_read_request(args.input))
        state = request.state.to_state()
    except (OSError, ValueError) as exc:
        # json.JSONDecodeError and pydantic.ValidationError are ValueErrors.
        logger.error("Invalid report request: %s", exc)
        return 1

    source = StaticEventStreamSource(EventStreamAdherenceReport(streams=request.streams))
    report = WeeklyAdherenceReportGenerator(source).generate(state)

    print(json.dumps(report.to_json_dict(), indent=args.indent))
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    config = Config.from_env()
    setup_logging(config.log_format, config.log_level)

    parser = _build_parser()
    args = parser.parse_args(argv)
    raise SystemExit(_run(args))


if __name__ == "__main__":
    main()
