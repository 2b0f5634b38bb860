from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone


LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class Notice:
    level: str  # success | error
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Notifier:
    """
    Collects user-facing notices and mirrors them to the log.
    """

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    def success(self, message: str) -> None:
        self._post("success", message)
        LOGGER.info(message)

    def error(self, message: str) -> None:
        self._post("error", message)
        LOGGER.warning(message)

    def errors(self) -> list[str]:
        return [notice.message for notice in self.notices if notice.level == "error"]

    def drain(self) -> list[Notice]:
        drained, self.notices = self.notices, []
        return drained

    def _post(self, level: str, message: str) -> None:
        self.notices.append(Notice(level=level, message=message))
