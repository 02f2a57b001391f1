"""
Notification collaborator (toast / alert sink).

The engine reports outcomes through success / info / error and never renders
anything itself. CollectingNotifier keeps the notices so the HTTP layer can
return them with the response, and logs each one.
"""
from __future__ import annotations

import logging
from typing import Protocol

from venue_availability.schemas.blockout import Notice

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def success(self, message: str) -> None: ...
    def info(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...


class CollectingNotifier:
    def __init__(self) -> None:
        self.notices: list[Notice] = []

    def success(self, message: str) -> None:
        logger.info("notify success: %s", message)
        self.notices.append(Notice(level="success", message=message))

    def info(self, message: str) -> None:
        logger.info("notify info: %s", message)
        self.notices.append(Notice(level="info", message=message))

    def error(self, message: str) -> None:
        logger.warning("notify error: %s", message)
        self.notices.append(Notice(level="error", message=message))

    def drain(self) -> list[Notice]:
        out, self.notices = self.notices, []
        return out
