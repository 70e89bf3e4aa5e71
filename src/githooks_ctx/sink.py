"""Ordered collection of error records contributed during a hook invocation."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from .models import ErrorRecord

logger = logging.getLogger(__name__)

CARP_LOCATION_PATTERN = re.compile(r" at .*? line \d+(?: thread \d+)?\.?$", re.S)


def format_error(prefix: str, message: str, details: str | None = None, nocarp: bool = False) -> str:
    """Render ``[prefix] message`` with an optional indented details block."""
    message = message.rstrip("\n")
    text = f"\n[{prefix}] {message}"
    if details:
        if nocarp:
            details = CARP_LOCATION_PATTERN.sub("", details)
        details = details.rstrip("\n")
        indented = "\n".join(f"  {line}" for line in details.split("\n"))
        text += f":\n\n{indented}\n"
    return text + "\n"


class ErrorSink:
    """Accumulates formatted error records; recording never raises.

    Whether accumulated errors fail the hook is up to the caller.
    ``nocarp`` is read lazily so the sink can be wired before config loads.
    """

    def __init__(self, nocarp: Callable[[], bool] | bool = False) -> None:
        self._nocarp = nocarp
        self._records: list[ErrorRecord] = []

    def record(self, prefix: str, message: str, details: str | None = None) -> bool:
        try:
            nocarp = self._nocarp() if callable(self._nocarp) else bool(self._nocarp)
        except Exception:  # noqa: BLE001
            logger.debug("nocarp lookup failed; keeping error locations", exc_info=True)
            nocarp = False
        details_text = None if details is None else str(details)
        text = format_error(str(prefix), str(message), details_text, nocarp)
        self._records.append(
            ErrorRecord(prefix=str(prefix), message=str(message), details=details_text, text=text)
        )
        logger.warning("%s", text.strip("\n"))
        return True

    @property
    def errors(self) -> list[str]:
        return [record.text for record in self._records]

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._records)

    @property
    def has_errors(self) -> bool:
        return bool(self._records)

    def drain(self) -> list[str]:
        """Return every formatted record in order and empty the sink."""
        drained = self.errors
        self._records.clear()
        return drained

    def __len__(self) -> int:
        return len(self._records)
