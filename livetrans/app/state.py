from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from livetrans.errors import InvalidTransition

logger = logging.getLogger(__name__)


class ConversationPhase(str, Enum):
    IDLE = "idle"
    RECORDING_SPEECH = "recording_speech"
    PROCESSING_SPEECH = "processing_speech"
    PLAYING_SPEECH = "playing_speech"
    ERROR = "error"


@dataclass(frozen=True)
class ConversationState:
    phase: ConversationPhase = ConversationPhase.IDLE
    cause: Optional[str] = None

    def __str__(self) -> str:
        if self.phase == ConversationPhase.ERROR:
            return f"error({self.cause})"
        return self.phase.value


StateListener = Callable[[ConversationState, ConversationState, str], None]

_P = ConversationPhase

# event -> (allowed source phases, target phase); None means any source.
_TRANSITIONS: dict[str, tuple[Optional[frozenset], ConversationPhase]] = {
    "start_capture": (frozenset({_P.IDLE}), _P.RECORDING_SPEECH),
    "finish_capture": (frozenset({_P.RECORDING_SPEECH}), _P.PROCESSING_SPEECH),
    "cancel_capture": (frozenset({_P.RECORDING_SPEECH}), _P.IDLE),
    "finish_processing": (frozenset({_P.PROCESSING_SPEECH}), _P.IDLE),
    "cancel_processing": (frozenset({_P.PROCESSING_SPEECH}), _P.IDLE),
    "start_playback": (frozenset({_P.IDLE}), _P.PLAYING_SPEECH),
    "finish_playback": (frozenset({_P.PLAYING_SPEECH}), _P.IDLE),
    "fail": (None, _P.ERROR),
    "reset": (frozenset({_P.ERROR}), _P.IDLE),
}


class ConversationStateMachine:
    """
    Single source of truth for which conversation operation may run.
    Every change goes through a named event; nothing is inferred.
    """

    def __init__(self) -> None:
        self._state = ConversationState()
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> ConversationState:
        return self._state

    @property
    def phase(self) -> ConversationPhase:
        return self._state.phase

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def can(self, event: str) -> bool:
        sources, _target = _TRANSITIONS[event]
        return sources is None or self._state.phase in sources

    def require(self, event: str) -> None:
        if event not in _TRANSITIONS:
            raise ValueError(f"Unknown conversation event: {event}")
        if not self.can(event):
            raise InvalidTransition(f"Cannot {event.replace('_', ' ')} while {self._state}.")

    def transition(self, event: str, cause: Optional[str] = None) -> ConversationState:
        self.require(event)
        _sources, target = _TRANSITIONS[event]
        previous = self._state
        if target == ConversationPhase.ERROR:
            current = ConversationState(target, cause or "Unknown error.")
        else:
            current = ConversationState(target)
        self._state = current
        logger.info("state_changed", extra={"event": event, "from_state": str(previous), "to_state": str(current)})
        for listener in list(self._listeners):
            listener(previous, current, event)
        return current

    def start_capture(self) -> ConversationState:
        return self.transition("start_capture")

    def finish_capture(self) -> ConversationState:
        return self.transition("finish_capture")

    def cancel_capture(self) -> ConversationState:
        return self.transition("cancel_capture")

    def finish_processing(self) -> ConversationState:
        return self.transition("finish_processing")

    def cancel_processing(self) -> ConversationState:
        return self.transition("cancel_processing")

    def start_playback(self) -> ConversationState:
        return self.transition("start_playback")

    def finish_playback(self) -> ConversationState:
        return self.transition("finish_playback")

    def fail(self, cause: str) -> ConversationState:
        return self.transition("fail", cause=cause)

    def reset(self) -> ConversationState:
        return self.transition("reset")
