from __future__ import annotations

import threading

from loguru import logger

_CANCEL_EVENT = threading.Event()
_CANCEL_REASON: str | None = None


class CancelledByUser(BaseException):
    """Raised when the caller requests cancellation of a running discovery."""

    def __init__(self, reason: str | None = None):
        super().__init__(reason or "cancelled")
        self.reason = reason or "cancelled"


def request_cancel(reason: str | None = None) -> None:
    """Mark the current process as cancelled (idempotent)."""
    global _CANCEL_REASON  # noqa: PLW0603

    if _CANCEL_EVENT.is_set():
        return
    _CANCEL_REASON = (reason or "cancelled").strip() or "cancelled"
    _CANCEL_EVENT.set()
    logger.warning(f"cancellation requested: {_CANCEL_REASON}")


def cancel_reason() -> str | None:
    return _CANCEL_REASON


def reset_cancel() -> None:
    """Reset cancellation state for a new call."""
    global _CANCEL_REASON  # noqa: PLW0603
    _CANCEL_EVENT.clear()
    _CANCEL_REASON = None


def check_cancelled(reason: str | None = None) -> None:
    """Raise CancelledByUser if cancellation has been requested."""
    if _CANCEL_EVENT.is_set():
        raise CancelledByUser(reason or _CANCEL_REASON)
