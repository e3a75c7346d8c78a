"""Page-visibility event source.

The presentation layer reports visibility changes with ``set_hidden()``;
listeners receive the new ``hidden`` flag synchronously.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

VisibilityListener = Callable[[bool], None]


class VisibilityEvents:
    """Minimal listener registry for visibility changes."""

    def __init__(self, hidden: bool = False) -> None:
        self._hidden = hidden
        self._listeners: list[VisibilityListener] = []

    @property
    def hidden(self) -> bool:
        return self._hidden

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def add_listener(self, listener: VisibilityListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: VisibilityListener) -> None:
        """Remove one registration of ``listener``; unknown listeners are ignored."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def set_hidden(self, hidden: bool) -> None:
        """Record a visibility change and notify listeners.

        Listener exceptions propagate to the caller.
        """
        self._hidden = hidden
        logger.debug("visibility_changed", extra={"hidden": hidden})
        for listener in list(self._listeners):
            listener(hidden)


__all__ = ["VisibilityEvents", "VisibilityListener"]
