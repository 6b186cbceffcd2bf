from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

"""User-facing alerts.

Failures that an operator has to act on (missing configuration, unreachable
spreadsheets, failed writes) are surfaced through an ``Alerter`` in addition to
the normal log line.
"""

__all__ = [
    "Alert",
    "Alerter",
    "LogAlerter",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Alert:
    title: str
    message: str


class Alerter(Protocol):
    def alert(self, title: str, message: str) -> None: ...


class LogAlerter:
    """Alerter that writes ``ALERT <title>: <message>`` at ERROR level."""

    def __init__(self) -> None:
        self.alerts: list[Alert] = []

    def alert(self, title: str, message: str) -> None:
        self.alerts.append(Alert(title, message))
        logger.error("ALERT %s: %s", title, message)
