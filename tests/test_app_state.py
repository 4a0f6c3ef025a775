from __future__ import annotations

import pytest

from livetrans.app.state import ConversationPhase, ConversationState, ConversationStateMachine
from livetrans.errors import InvalidTransition


def test_state_machine_happy_path() -> None:
    fsm = ConversationStateMachine()
    assert fsm.phase == ConversationPhase.IDLE
    assert fsm.state.cause is None

    fsm.start_capture()
    assert fsm.phase == ConversationPhase.RECORDING_SPEECH

    fsm.finish_capture()
    assert fsm.phase == ConversationPhase.PROCESSING_SPEECH

    fsm.finish_processing()
    assert fsm.phase == ConversationPhase.IDLE


def test_error_requires_explicit_reset() -> None:
    fsm = ConversationStateMachine()
    fsm.start_capture()
    fsm.fail("Microphone unavailable: boom")
    assert fsm.phase == ConversationPhase.ERROR
    assert fsm.state.cause == "Microphone unavailable: boom"

    with pytest.raises(InvalidTransition):
        fsm.start_capture()
    assert fsm.phase == ConversationPhase.ERROR

    fsm.reset()
    assert fsm.state == ConversationState(ConversationPhase.IDLE)
    fsm.start_capture()
    assert fsm.phase == ConversationPhase.RECORDING_SPEECH


def test_invalid_transition_leaves_state_unchanged() -> None:
    fsm = ConversationStateMachine()
    fsm.start_capture()
    with pytest.raises(InvalidTransition):
        fsm.start_capture()
    with pytest.raises(InvalidTransition):
        fsm.finish_processing()
    with pytest.raises(InvalidTransition):
        fsm.start_playback()
    assert fsm.phase == ConversationPhase.RECORDING_SPEECH


def test_any_state_can_fail() -> None:
    for prepare in (
        lambda m: None,
        lambda m: m.start_capture(),
        lambda m: (m.start_capture(), m.finish_capture()),
        lambda m: m.start_playback(),
    ):
        fsm = ConversationStateMachine()
        prepare(fsm)
        fsm.fail("x")
        assert fsm.phase == ConversationPhase.ERROR


def test_cancel_and_playback_transitions() -> None:
    fsm = ConversationStateMachine()
    fsm.start_capture()
    fsm.cancel_capture()
    assert fsm.phase == ConversationPhase.IDLE

    fsm.start_capture()
    fsm.finish_capture()
    fsm.cancel_processing()
    assert fsm.phase == ConversationPhase.IDLE

    fsm.start_playback()
    assert fsm.phase == ConversationPhase.PLAYING_SPEECH
    fsm.finish_playback()
    assert fsm.phase == ConversationPhase.IDLE


def test_listeners_receive_named_events() -> None:
    fsm = ConversationStateMachine()
    seen = []
    listener = lambda prev, cur, event: seen.append((prev.phase, cur.phase, event))  # noqa: E731
    fsm.add_listener(listener)

    fsm.start_capture()
    fsm.fail("boom")
    fsm.reset()
    fsm.remove_listener(listener)
    fsm.start_capture()

    assert seen == [
        (ConversationPhase.IDLE, ConversationPhase.RECORDING_SPEECH, "start_capture"),
        (ConversationPhase.RECORDING_SPEECH, ConversationPhase.ERROR, "fail"),
        (ConversationPhase.ERROR, ConversationPhase.IDLE, "reset"),
    ]


def test_error_state_str_includes_cause() -> None:
    state = ConversationState(ConversationPhase.ERROR, "Transcription failed: timeout")
    assert str(state) == "error(Transcription failed: timeout)"
    assert str(ConversationState()) == "idle"
