__all__ = []

from collections.abc import Callable


class LogMessage:
    """
    Deferred message callback for logging expensive messages.

    The callback runs only when a handler actually formats the record, so
    array dumps cost nothing while the package logger is silent.
    """

    def __init__(self, fn: Callable[..., str]) -> None:
        self._fn = fn
        self._str = None

    def __str__(self) -> str:
        if self._str is None:
            self._str = self._fn()
        return self._str
