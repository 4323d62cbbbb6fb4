"""Client that fetches tenant log events using checkpoint pagination."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from .auth0api import (
    APIRateLimitReached,
    FetchCancelled,
    Log,
    QuotaLimitExceeded,
    create_management,
)

_FIELDS = ["type", "log_id", "date", "client_name"]
_TAKE = 100
_MAX_CHECKPOINT_ATTEMPTS = 30


class MaxAttemptsReached(Exception):
    """No checkpoint log was found within the allowed number of attempts."""

    def __init__(self, message: str = "max number of attempts was reached") -> None:
        super().__init__(message)


class LogClient:
    """Fetches every log event from a starting day onwards."""

    def __init__(self, mgmt: Any) -> None:
        self.mgmt = mgmt

    def list(self, start: date | None = None) -> list[Log]:
        """Return all log events after the checkpoint found before ``start``."""
        if start is not None and not isinstance(start, date):
            raise TypeError('invalid "from" argument passed to the client')

        try:
            checkpoint = self.find_latest_checkpoint(start, 0, _MAX_CHECKPOINT_ATTEMPTS)
        except MaxAttemptsReached:
            checkpoint = None
        except QuotaLimitExceeded as exc:
            raise APIRateLimitReached() from exc

        logs: list[Log] = []
        while True:
            try:
                batch = self.fetch_logs(checkpoint)
            except QuotaLimitExceeded as exc:
                raise APIRateLimitReached() from exc
            except FetchCancelled as exc:
                raise FetchCancelled(str(exc), partial=logs) from exc
            if not batch:
                return logs
            logs.extend(batch)
            checkpoint = batch[-1]

    def fetch_logs(self, checkpoint: Log | None) -> list[Log]:
        """Return up to 100 logs after ``checkpoint``, or the latest ones."""
        if checkpoint is not None:
            return self.mgmt.list_logs(
                fields=_FIELDS, from_id=checkpoint.log_id, take=_TAKE
            )
        return self.mgmt.list_logs(fields=_FIELDS, take=_TAKE)

    def find_latest_checkpoint(
        self, start: date | None, attempt: int, max_attempts: int
    ) -> Log | None:
        """Look back day by day from ``start`` for a log to resume from."""
        if attempt > max_attempts:
            raise MaxAttemptsReached()
        if start is None:
            return None
        day = start
        for _ in range(attempt, max_attempts + 1):
            day = day - timedelta(days=1)
            stamp = day.strftime("%Y-%m-%d")
            logs = self.mgmt.list_logs(
                fields=_FIELDS,
                per_page=1,
                page=0,
                query=f"date:[{stamp} TO {stamp}]",
            )
            if logs:
                return logs[0]
        raise MaxAttemptsReached()


def new(domain: str, client_id: str, client_secret: str, token: str) -> LogClient:
    """Create a log client from tenant settings."""
    return LogClient(create_management(domain, client_id, client_secret, token))