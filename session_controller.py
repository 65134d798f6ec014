"""State-machine based session orchestration.

One session is a single hotkey hold: press starts recording, release stops
it and hands the WAV file through the gatekeeper to the transcriber. A
capacity-1 lock is taken without blocking on press; presses arriving while a
session is in flight are dropped. Every exit path returns the state machine
to IDLE and releases the lock.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Callable, Optional

from errors import (
    AUDIO_DEVICE_UNAVAILABLE,
    ERROR_MESSAGES,
    SESSION_FAILED,
    SttInvocationError,
)
from interfaces import AudioCapture, ErrorPresenter, PostProcessor, ResultConsumer, Transcriber
from models import SessionState, SttResult, TransitionEvent, WavFormatViolation
from state_machine import SessionStateMachine
from wav_gatekeeper import quarantine_wav, validate_wav

logger = logging.getLogger(__name__)

StateCallback = Callable[[TransitionEvent], None]
NoSpeechCallback = Callable[[], None]
Gatekeeper = Callable[[Path], Optional[WavFormatViolation]]
Quarantine = Callable[[Path], Optional[Path]]


class SessionController:
    def __init__(
        self,
        capture: AudioCapture,
        transcriber: Transcriber,
        result_consumer: ResultConsumer,
        error_presenter: ErrorPresenter,
        scratch_dir: Path,
        post_processor: Optional[PostProcessor] = None,
        gatekeeper: Gatekeeper = validate_wav,
        quarantine: Quarantine = quarantine_wav,
        max_recording_s: Optional[float] = None,
        on_state_change: Optional[StateCallback] = None,
        on_no_speech: Optional[NoSpeechCallback] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._capture = capture
        self._transcriber = transcriber
        self._result_consumer = result_consumer
        self._error_presenter = error_presenter
        self._scratch_dir = scratch_dir
        self._post_processor = post_processor
        self._gatekeeper = gatekeeper
        self._quarantine = quarantine
        self._max_recording_s = max_recording_s
        self._on_state_change = on_state_change
        self._on_no_speech = on_no_speech
        self._log = log or logger

        self._state_machine = SessionStateMachine(listener=self._emit_state_change, log=self._log)
        self._session_lock = threading.Lock()
        self._guard = threading.RLock()
        self._session_id = 0
        self._cancel_event = threading.Event()
        self._limit_timer: Optional[threading.Timer] = None
        self._worker: Optional[threading.Thread] = None
        self._closed = False

    @property
    def state(self) -> SessionState:
        return self._state_machine.state

    @property
    def is_busy(self) -> bool:
        return self._session_lock.locked()

    # ------------------------------------------------------------------
    # Hotkey entry points
    # ------------------------------------------------------------------

    def on_hotkey_down(self) -> bool:
        """Start a session. Returns False when the press was dropped."""
        if not self._session_lock.acquire(blocking=False):
            self._log.warning("Recording already in progress - ignoring hotkey")
            return False

        with self._guard:
            if self._closed:
                self._log.warning("Controller closed - ignoring hotkey")
                self._session_lock.release()
                return False
            if self._state_machine.state != SessionState.IDLE:
                self._log.warning("Session lock was free but state is %s", self._state_machine.state.value)
                self._session_lock.release()
                return False

            self._session_id += 1
            self._cancel_event = threading.Event()
            try:
                if not self._capture.is_microphone_available():
                    self._log.warning("No microphone available - not starting a session")
                    self._present(AUDIO_DEVICE_UNAVAILABLE, ERROR_MESSAGES[AUDIO_DEVICE_UNAVAILABLE])
                    self._end_session()
                    return False
                self._state_machine.transition_to(SessionState.RECORDING)
                self._capture.start(self._scratch_dir)
            except Exception:
                self._log.exception("Failed to start recording")
                self._present(SESSION_FAILED, ERROR_MESSAGES[SESSION_FAILED])
                self._end_session()
                return False

            self._arm_limit_timer(self._session_id)
            return True

    def on_hotkey_up(self) -> Optional[threading.Thread]:
        """Stop recording and process the capture on a background thread.

        Returns the worker thread, or None when no recording was active.
        """
        with self._guard:
            if self._state_machine.state != SessionState.RECORDING:
                self._log.debug("Hotkey released while %s - ignoring", self._state_machine.state.value)
                return None
            self._cancel_limit_timer()
            self._state_machine.transition_to(SessionState.PROCESSING)
            worker = threading.Thread(target=self._process_session, name="dictation-session", daemon=True)
            self._worker = worker
            try:
                worker.start()
            except RuntimeError:
                self._log.exception("Failed to start session worker")
                self._end_session()
                return None
            return worker

    def cancel_session(self, reason: str) -> None:
        with self._guard:
            state = self._state_machine.state
            if state == SessionState.IDLE:
                return
            self._log.warning("Cancelling session (%s) in state %s", reason, state.value)
            self._cancel_event.set()
            if state != SessionState.RECORDING:
                # The worker sees the cancel event, kills the STT process and cleans up.
                return
            try:
                self._capture.stop()
            except Exception:
                self._log.exception("Failed to stop audio capture during cancel")
            finally:
                self._end_session()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        worker = self._worker
        if worker is not None:
            worker.join(timeout)
        return self._state_machine.state == SessionState.IDLE and not self.is_busy

    def close(self, timeout: Optional[float] = 5.0) -> None:
        with self._guard:
            self._closed = True
            self.cancel_session("shutdown")
        self.wait_idle(timeout)

    # ------------------------------------------------------------------
    # Session worker
    # ------------------------------------------------------------------

    def _process_session(self) -> None:
        try:
            wav_path = self._capture.stop()
            self._log.info("Recording saved to %s", wav_path)

            violation = self._gatekeeper(wav_path)
            if violation is not None:
                self._log.warning(
                    "WAV file validation failed: %s (field=%s, expected=%s, actual=%s)",
                    violation.message,
                    violation.field,
                    violation.expected,
                    violation.actual,
                )
                self._quarantine(wav_path)
                return

            outcome = self._transcriber.transcribe(wav_path, self._cancel_event)
            if isinstance(outcome, SttInvocationError):
                self._log.error(
                    "STT failed: %s (exit_code=%s, stderr=%r)",
                    outcome,
                    outcome.exit_code,
                    outcome.stderr,
                )
                self._present(outcome.code, outcome.user_message)
                return

            self._deliver(outcome)
        except Exception:
            self._log.exception("Error during recording/processing")
            self._present(SESSION_FAILED, ERROR_MESSAGES[SESSION_FAILED])
        finally:
            with self._guard:
                self._end_session()

    def _deliver(self, result: SttResult) -> None:
        if result.is_empty:
            self._log.info("No speech detected in recording")
            if self._on_no_speech:
                self._on_no_speech()
            return

        if self._post_processor is not None:
            self._state_machine.transition_to(SessionState.POST_PROCESSING)
            result = self._post_process(result)

        self._result_consumer.consume(result)
        self._log.info("Dictation completed (%d characters)", len(result.text))

    def _post_process(self, result: SttResult) -> SttResult:
        assert self._post_processor is not None
        try:
            processed = self._post_processor.process(result)
        except Exception:
            self._log.exception("Post-processing failed - using original transcript")
            return result
        return replace(processed, post_processed=True)

    # ------------------------------------------------------------------
    # Cleanup helpers
    # ------------------------------------------------------------------

    def _end_session(self) -> None:
        """Return to IDLE along legal edges and release the session lock."""
        try:
            self._cancel_limit_timer()
            if self._state_machine.state == SessionState.RECORDING:
                self._state_machine.transition_to(SessionState.PROCESSING)
            self._state_machine.transition_to(SessionState.IDLE)
        finally:
            if self._session_lock.locked():
                self._session_lock.release()

    def _present(self, code: str, message: str) -> None:
        try:
            self._error_presenter.present(code, message)
        except Exception:
            self._log.exception("Error presenter failed for %s", code)

    def _emit_state_change(self, event: TransitionEvent) -> None:
        if self._on_state_change is None:
            return
        try:
            self._on_state_change(event)
        except Exception:
            self._log.exception("State change callback failed")

    # ------------------------------------------------------------------
    # Recording limit
    # ------------------------------------------------------------------

    def _arm_limit_timer(self, session_id: int) -> None:
        if not self._max_recording_s:
            return
        timer = threading.Timer(self._max_recording_s, self._on_recording_limit, args=(session_id,))
        timer.daemon = True
        self._limit_timer = timer
        timer.start()

    def _cancel_limit_timer(self) -> None:
        timer = self._limit_timer
        self._limit_timer = None
        if timer is not None:
            timer.cancel()

    def _on_recording_limit(self, session_id: int) -> None:
        with self._guard:
            if session_id != self._session_id or self._state_machine.state != SessionState.RECORDING:
                return
            self._log.warning("Recording limit of %ss reached - stopping", self._max_recording_s)
            self.on_hotkey_up()
