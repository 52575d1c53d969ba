"""Failure kinds raised while driving the OSS portal.

Every failure is terminal for the current scrape. The kind and the step
that failed are kept on the exception so they can be logged even when
the HTTP layer collapses them into a generic server error.
"""

from __future__ import annotations


class ScrapeError(RuntimeError):
    """Base class for all portal scrape failures."""

    kind = "ScrapeError"

    def __init__(self, message: str, step: str | None = None) -> None:
        super().__init__(message)
        self.step = step

    def describe(self) -> str:
        where = f" at step '{self.step}'" if self.step else ""
        return f"{self.kind}{where}: {self}"


class AuthenticationFailed(ScrapeError):
    """The post-login prompt never appeared (bad credentials or network)."""

    kind = "AuthenticationFailed"


class NavigationTimeout(ScrapeError):
    """A readiness signal did not appear within the wait budget."""

    kind = "NavigationTimeout"


class OptionNotFound(ScrapeError):
    """A dropdown or radio group has no entry matching the requested text."""

    kind = "OptionNotFound"


class DateNotSelectable(ScrapeError):
    """The calendar widget has no enabled cell for the requested day."""

    kind = "DateNotSelectable"


class ExportFailed(ScrapeError):
    """Querying or exporting the ticket grid failed."""

    kind = "ExportFailed"


class ConfigurationError(RuntimeError):
    """A required setting is missing from the environment."""


class InvalidRequest(ValueError):
    """Inbound scrape parameters are malformed."""


__all__ = [
    "ScrapeError",
    "AuthenticationFailed",
    "NavigationTimeout",
    "OptionNotFound",
    "DateNotSelectable",
    "ExportFailed",
    "InvalidRequest",
    "ConfigurationError",
]
