from datetime import UTC, datetime, timedelta


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(UTC)

    def now_ms(self) -> int:
        return int(self.now_utc().timestamp() * 1000)


class FixedClock:
    """Clock pinned to a given instant; used by tests and replay tooling."""

    def __init__(self, fixed: datetime) -> None:
        self._time = fixed

    def now_utc(self) -> datetime:
        return self._time

    def now_ms(self) -> int:
        return int(self._time.timestamp() * 1000)

    def advance(self, delta: timedelta) -> None:
        self._time = self._time + delta
