from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Iterator, List, Optional, Tuple

from livetrans.app.diagnostics import describe_failure
from livetrans.app.state import ConversationPhase, ConversationState, ConversationStateMachine
from livetrans.asr.base import TranscriptionClient
from livetrans.audio.capture import AudioCapture
from livetrans.audio.playback import AudioPlayer
from livetrans.contracts import StateChanged, Translation, TranslationAppended
from livetrans.errors import DeviceUnavailable, IOFailure, LiveTranslationError
from livetrans.nlp.prompt import build_translation_prompt
from livetrans.nlp.stream_parser import StreamingTranslationParser
from livetrans.nlp.translator.base import CompletionStream

_default_logger = logging.getLogger(__name__)

SessionListener = Callable[[Any], None]


class ProcessingCancelled(Exception):
    pass


class CancellationToken:
    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ProcessingCancelled()


class SessionLog:
    """Append-only, arrival-ordered translations for one run."""

    def __init__(self) -> None:
        self._items: List[Translation] = []

    def append(self, translation: Translation) -> int:
        self._items.append(translation)
        return len(self._items) - 1

    def snapshot(self) -> Tuple[Translation, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Translation]:
        return iter(tuple(self._items))

    def __getitem__(self, index: int) -> Translation:
        return self._items[index]


class ProcessingTask:
    """Handle for one background cycle (processing or playback)."""

    def __init__(self, thread: threading.Thread, token: CancellationToken, generation: int) -> None:
        self.thread = thread
        self.token = token
        self.generation = generation

    @property
    def done(self) -> bool:
        return not self.thread.is_alive()

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def join(self, timeout: Optional[float] = None) -> bool:
        self.thread.join(timeout)
        return self.done


def _log_event(logger: logging.Logger | None, level: int, event: str, **fields: Any) -> None:
    if logger is None:
        return
    logger.log(level, event, extra=fields)


class TranslationSession:
    """
    Orchestrates one conversation: capture -> transcription -> streamed completion
    -> parsed records -> session log.

    All state, log and parser mutations happen under one session lock; the
    processing worker only touches them through `_feed` and the completion hooks,
    which re-check the cycle generation and the cancellation token first.
    """

    def __init__(
        self,
        *,
        capture: AudioCapture,
        transcriber: TranscriptionClient,
        completion: CompletionStream,
        player: Optional[AudioPlayer] = None,
        prompt_builder: Callable[[str, str], str] = build_translation_prompt,
        logger: logging.Logger | None = _default_logger,
    ) -> None:
        self._capture = capture
        self._transcriber = transcriber
        self._completion = completion
        self._player = player
        self._prompt_builder = prompt_builder
        self._logger = logger

        self._lock = threading.RLock()
        self._fsm = ConversationStateMachine()
        self._fsm.add_listener(self._on_state_change)
        self._log = SessionLog()
        self._parser = StreamingTranslationParser()
        self._listeners: List[SessionListener] = []
        self._generation = 0
        self._token: Optional[CancellationToken] = None
        self._worker: Optional[threading.Thread] = None
        self.last_transcript = ""

    # -- observation -------------------------------------------------------

    @property
    def state(self) -> ConversationState:
        return self._fsm.state

    @property
    def phase(self) -> ConversationPhase:
        return self._fsm.phase

    @property
    def log(self) -> SessionLog:
        return self._log

    @property
    def translations(self) -> Tuple[Translation, ...]:
        return self._log.snapshot()

    @property
    def pending_text(self) -> str:
        return self._parser.pending

    @property
    def level(self) -> float:
        return self._capture.level

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, event: Any) -> None:
        for listener in list(self._listeners):
            listener(event)

    def _on_state_change(self, previous: ConversationState, current: ConversationState, event: str) -> None:
        self._emit(StateChanged(previous=previous, current=current, event=event))

    def _fail(self, exc: BaseException) -> None:
        cause = describe_failure(exc)
        self._fsm.fail(cause)

    # -- capture -----------------------------------------------------------

    def start_capture(self) -> None:
        with self._lock:
            self._fsm.start_capture()
            try:
                self._capture.start()
            except LiveTranslationError as e:
                _log_event(self._logger, logging.WARNING, "capture_start_failed", error=str(e))
                self._fail(e)
                raise

    def finish_capture(self, language_hint: str = "") -> ProcessingTask:
        with self._lock:
            self._fsm.require("finish_capture")
            try:
                audio = self._capture.stop()
            except LiveTranslationError as e:
                _log_event(self._logger, logging.WARNING, "capture_stop_failed", error=str(e))
                self._fail(e)
                raise
            self._fsm.finish_capture()

            self._generation += 1
            generation = self._generation
            token = CancellationToken()
            self._token = token
            parser = StreamingTranslationParser()
            self._parser = parser
            worker = threading.Thread(
                target=self._run_processing,
                args=(audio, language_hint, token, generation, parser),
                name=f"livetrans-processing-{generation}",
                daemon=True,
            )
            self._worker = worker
            worker.start()
            _log_event(
                self._logger,
                logging.INFO,
                "processing_started",
                generation=generation,
                audio_bytes=len(audio),
                language_hint=language_hint,
            )
            return ProcessingTask(worker, token, generation)

    # -- processing task ---------------------------------------------------

    def _is_current(self, token: CancellationToken, generation: int) -> bool:
        return generation == self._generation and not token.cancelled

    def _run_processing(
        self,
        audio: bytes,
        language_hint: str,
        token: CancellationToken,
        generation: int,
        parser: StreamingTranslationParser,
    ) -> None:
        t0 = time.perf_counter()
        try:
            transcript = self._transcriber.transcribe(audio, language_hint)
            with self._lock:
                token.raise_if_cancelled()
                self.last_transcript = transcript
            _log_event(
                self._logger,
                logging.INFO,
                "transcript_ready",
                generation=generation,
                chars=len(transcript),
                ms=round((time.perf_counter() - t0) * 1000.0, 2),
            )
            if transcript.strip():
                self._stream_translations(transcript, language_hint, token, generation, parser)
            else:
                _log_event(self._logger, logging.INFO, "transcript_empty", generation=generation)
            token.raise_if_cancelled()
            self._finish_processing(token, generation)
        except ProcessingCancelled:
            _log_event(self._logger, logging.INFO, "processing_cancelled", generation=generation)
        except LiveTranslationError as e:
            _log_event(self._logger, logging.WARNING, "processing_failed", generation=generation, error=str(e))
            self._fail_cycle(token, generation, e)
        except Exception as e:
            if self._logger is not None:
                self._logger.exception("processing_crash", extra={"generation": generation})
            self._fail_cycle(token, generation, e)

    def _stream_translations(
        self,
        transcript: str,
        language_hint: str,
        token: CancellationToken,
        generation: int,
        parser: StreamingTranslationParser,
    ) -> None:
        prompt = self._prompt_builder(transcript, language_hint)
        deltas = self._completion.stream(prompt)
        try:
            for delta in deltas:
                self._feed(delta, token, generation, parser)
        finally:
            close = getattr(deltas, "close", None)
            if close is not None:
                close()
        with self._lock:
            token.raise_if_cancelled()
            parser.finish()

    def _feed(self, delta: str, token: CancellationToken, generation: int, parser: StreamingTranslationParser) -> None:
        with self._lock:
            if not self._is_current(token, generation):
                raise ProcessingCancelled()
            for record in parser.feed(delta):
                index = self._log.append(record)
                _log_event(
                    self._logger,
                    logging.INFO,
                    "record_appended",
                    generation=generation,
                    index=index,
                    user=record.user,
                    original_language=record.original_language,
                    translated_language=record.translated_language,
                )
                self._emit(TranslationAppended(translation=record, index=index))

    def _finish_processing(self, token: CancellationToken, generation: int) -> None:
        with self._lock:
            if not self._is_current(token, generation):
                return
            if self._fsm.phase == ConversationPhase.PROCESSING_SPEECH:
                self._fsm.finish_processing()
            self._token = None

    def _fail_cycle(self, token: CancellationToken, generation: int, exc: BaseException) -> None:
        with self._lock:
            if not self._is_current(token, generation):
                _log_event(self._logger, logging.INFO, "stale_failure_ignored", generation=generation)
                return
            self._token = None
            self._fail(exc)

    # -- playback ----------------------------------------------------------

    def play_last_capture(self) -> ProcessingTask:
        with self._lock:
            if self._player is None:
                raise DeviceUnavailable("No audio output configured.")
            self._fsm.require("start_playback")
            if not self._capture.path.exists():
                raise IOFailure("Nothing has been recorded yet.")
            self._fsm.start_playback()
            try:
                self._player.play(self._capture.path)
            except LiveTranslationError as e:
                self._fail(e)
                raise

            self._generation += 1
            generation = self._generation
            token = CancellationToken()
            self._token = token
            worker = threading.Thread(
                target=self._run_playback,
                args=(token, generation),
                name=f"livetrans-playback-{generation}",
                daemon=True,
            )
            self._worker = worker
            worker.start()
            return ProcessingTask(worker, token, generation)

    def _run_playback(self, token: CancellationToken, generation: int) -> None:
        try:
            self._player.wait()
        except Exception as e:
            if self._logger is not None:
                self._logger.exception("playback_crash", extra={"generation": generation})
            self._fail_cycle(token, generation, e)
            return
        with self._lock:
            if self._is_current(token, generation) and self._fsm.phase == ConversationPhase.PLAYING_SPEECH:
                self._fsm.finish_playback()
                self._token = None

    # -- control -----------------------------------------------------------

    def cancel(self) -> None:
        with self._lock:
            phase = self._fsm.phase
            if phase == ConversationPhase.RECORDING_SPEECH:
                try:
                    self._capture.cancel()
                except LiveTranslationError as e:
                    self._fail(e)
                    raise
                self._fsm.cancel_capture()
            elif phase == ConversationPhase.PROCESSING_SPEECH:
                if self._token is not None:
                    self._token.cancel()
                    self._token = None
                self._parser.reset()
                self._fsm.cancel_processing()
                _log_event(self._logger, logging.INFO, "processing_cancel_requested", generation=self._generation)
            elif phase == ConversationPhase.PLAYING_SPEECH:
                if self._token is not None:
                    self._token.cancel()
                    self._token = None
                if self._player is not None:
                    self._player.stop()
                self._fsm.finish_playback()

    def reset(self) -> None:
        """Acknowledge an error so a new cycle can start."""
        with self._lock:
            self._fsm.reset()

    def close(self, timeout: Optional[float] = 5.0) -> None:
        self.cancel()
        worker = self._worker
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout)
