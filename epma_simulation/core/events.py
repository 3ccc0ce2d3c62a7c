"""
Events fired by the engine and the listener interface that receives them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .engine import MonteCarloEngine


class EventKind(IntEnum):
    """Points in a run at which listeners are notified."""

    SCATTER = 1
    NON_SCATTER = 2
    BACKSCATTER = 3
    EXIT_MATERIAL = 4
    TRAJECTORY_START = 5
    TRAJECTORY_END = 6
    LAST_TRAJECTORY = 7
    FIRST_TRAJECTORY = 8
    START_SECONDARY = 9
    END_SECONDARY = 10
    POST_SCATTER = 11
    BEAM_ENERGY_CHANGED = 100


class EventListener(ABC):
    """Receives engine events synchronously.

    Plain callables taking ``(event, engine)`` may be registered as well;
    subclasses only need to implement ``on_event``.
    """

    @abstractmethod
    def on_event(self, event: EventKind, engine: "MonteCarloEngine") -> None:
        """Handle one event. ``engine.electron`` is the electron concerned."""

    def __call__(self, event: EventKind, engine: "MonteCarloEngine") -> None:
        self.on_event(event, engine)
