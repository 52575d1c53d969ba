from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from oss_tickets.errors import InvalidRequest

# One row of the exported CSV, keyed by header column in file order
TicketRecord = dict[str, str]

# Radio labels the portal currently shows; the set is open, so this is not enforced
KNOWN_STATUS_LABELS = ("Current", "History", "Both")

# Strict calendar-date form; date.fromisoformat alone also takes "20240115" and week dates
ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


@dataclass(frozen=True)
class ScrapeRequest:
    """Filter set for one ticket export."""
    ticket_type: str  # exact option label in the "Ticket Type" dropdown
    start_date: date
    end_date: date
    status_filter: str  # e.g. "Current", "History", "Both"

    def __post_init__(self) -> None:
        if not self.ticket_type:
            raise InvalidRequest("ticket type must not be empty")
        if not self.status_filter:
            raise InvalidRequest("status filter must not be empty")
        if self.start_date > self.end_date:
            raise InvalidRequest(
                f"start date {self.start_date.isoformat()} is after end date {self.end_date.isoformat()}"
            )

    @classmethod
    def from_params(
        cls,
        ticket_type: str,
        start_date: str,
        end_date: str,
        status_filter: str,
    ) -> ScrapeRequest:
        """Build a request from raw string parameters (dates as YYYY-MM-DD)."""
        return cls(
            ticket_type=ticket_type,
            start_date=_parse_date(start_date, "start date"),
            end_date=_parse_date(end_date, "end date"),
            status_filter=status_filter,
        )


@dataclass
class CalendarCursor:
    """Year/month currently shown by a date-picker popup (month is 0-11)."""
    year: int
    month: int

    def matches(self, target: date) -> bool:
        return self.year == target.year and self.month == target.month - 1


def _parse_date(value: str, field_name: str) -> date:
    text = value.strip() if isinstance(value, str) else ""
    if ISO_DATE.fullmatch(text):
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
    raise InvalidRequest(f"{field_name} '{value}' is not a valid YYYY-MM-DD date")
