"""One-shot failure guard for the emitter."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from loguru import logger


class EmitterState(str, Enum):
    """Emitter lifecycle states. Transitions only move forward."""

    DISABLED_BY_CONFIG = "disabled_by_config"
    ENABLED = "enabled"
    DISABLED_BY_FAILURE = "disabled_by_failure"


class FailureGuard:
    """
    One-shot breaker.

    Starts DISABLED_BY_CONFIG. ``enable()`` moves it to ENABLED once; ``trip()``
    moves ENABLED to DISABLED_BY_FAILURE permanently. There is no half-open
    state and no reset.
    """

    def __init__(self, name: str = "emitter") -> None:
        self._name = name
        self._state = EmitterState.DISABLED_BY_CONFIG
        self.reason: Optional[str] = None

    @property
    def state(self) -> EmitterState:
        return self._state

    @property
    def enabled(self) -> bool:
        return self._state is EmitterState.ENABLED

    def enable(self) -> bool:
        if self._state is not EmitterState.DISABLED_BY_CONFIG:
            return False
        self._state = EmitterState.ENABLED
        return True

    def trip(self, reason: str) -> bool:
        """Disable permanently. Returns True only on the transition itself."""
        if self._state is not EmitterState.ENABLED:
            return False
        self._state = EmitterState.DISABLED_BY_FAILURE
        self.reason = reason
        logger.warning(f"Emitter {self._name} disabled after transport failure: {reason}")
        return True
