from __future__ import annotations

import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class Navigator(Protocol):
    def navigate(self, target: str, replace_history: bool = False) -> None:
        ...


class HistoryNavigator:
    """In-process route history. Listeners are told about every route change
    and are expected to swap the visible screen."""

    def __init__(self, initial: str, on_change: Callable[[str], None] | None = None):
        self._history: list[str] = [initial]
        self._on_change = on_change

    @property
    def current(self) -> str:
        return self._history[-1]

    @property
    def history(self) -> tuple[str, ...]:
        return tuple(self._history)

    def set_listener(self, on_change: Callable[[str], None] | None) -> None:
        self._on_change = on_change

    def navigate(self, target: str, replace_history: bool = False) -> None:
        if replace_history:
            self._history[-1] = target
        else:
            self._history.append(target)
        logger.debug("Navigated to %s (replace_history=%s)", target, replace_history)
        self._notify()

    def can_go_back(self) -> bool:
        return len(self._history) > 1

    def back(self) -> bool:
        if not self.can_go_back():
            return False
        self._history.pop()
        self._notify()
        return True

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.current)
