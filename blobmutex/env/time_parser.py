import re
from datetime import timedelta

from blobmutex.errors import ConfigurationError


class TimeParser:
    """
    Parses durations such as ``30s``, ``1m30s``, ``500ms`` or ``1.5h``
    into seconds. A bare number is read as seconds.
    """

    _pattern = re.compile(
        r"(?P<val>\d+(\.\d+)?)\s*(?P<unit>ms|[smhdw])?",
        flags=re.I,
    )

    def __init__(self, time_amount: str | int | float | None = None) -> None:
        self._units = {
            "ms": "milliseconds",
            "s": "seconds",
            "m": "minutes",
            "h": "hours",
            "d": "days",
            "w": "weeks",
        }

        self.time: float | None = None
        if time_amount is not None:
            self.time = self.parse(time_amount)

    def parse(self, time_amount: str | int | float) -> float:
        if isinstance(time_amount, (int, float)):
            return float(time_amount)

        remainder = self._pattern.sub("", time_amount).strip()
        matches = list(self._pattern.finditer(time_amount))

        if remainder or len(matches) < 1:
            raise ConfigurationError(
                f"Err. - invalid duration - {time_amount!r}"
            )

        duration = timedelta()
        for match in matches:
            unit = (match.group("unit") or "s").lower()
            duration += timedelta(
                **{self._units[unit]: float(match.group("val"))}
            )

        return duration.total_seconds()
