"""
Guidance session: one rider, one consumer.

Camera frames, recognizer callbacks, TTS callbacks and restart timers all
arrive on their own threads. Each is turned into a callable and posted to a
single queue; only the consumer runs them, so dialogue, smoothing and
cooldown state are never touched concurrently. OCR runs on a worker and posts
its result back to the same queue.
"""

import logging
import queue
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Callable, List, Optional, Sequence

import numpy as np

from ..config import ProjectConfig
from ..dialogue import (
    CommandCatalog,
    DialogueOutcome,
    DialogueSnapshot,
    DialogueStateMachine,
    ListeningController,
)
from ..navigation import RouteDirectionResolver
from ..perception import LabelTable, PerceptionFusionEngine
from ..signage import OcrReport, SignageJob, SignageValidator
from ..speech import LoggingSpeechSink, MicOwner, MicrophoneArbiter, PhraseKind, SpeechOutputArbiter
from ..types import Detection, GuidanceResult
from ..utils.scheduling import ThreadingScheduler

logger = logging.getLogger(__name__)


class GuidanceSession:
    """
    Wires perception, dialogue, signage and speech for one session.

    Producers call the ``submit_*`` / ``notify_*`` methods from any thread.
    Either ``start()`` a consumer thread or drain the queue yourself with
    ``process_pending()``.

    Usage:
        session = GuidanceSession(config, tts_sink=sink, recognizer=rec, ocr_reader=reader)
        session.start()
        session.start_listening()
        session.submit_frame(detections, 640, 640, frame=preview, frame_id=n)
        ...
        session.stop()
    """

    def __init__(
        self,
        config: Optional[ProjectConfig] = None,
        tts_sink=None,
        recognizer=None,
        ocr_reader=None,
        catalog: Optional[CommandCatalog] = None,
        label_table: Optional[LabelTable] = None,
        scheduler=None,
        clock: Callable[[], float] = time.monotonic,
        ocr_in_background: bool = True,
    ):
        """
        Args:
            config: Project configuration (defaults if None)
            tts_sink: ``speak(text, utterance_id)`` collaborator; a logging
                      sink is used when None
            recognizer: Speech recognizer with ``is_available()``,
                        ``start()`` and ``stop()``; None disables listening
            ocr_reader: ``read_text(image) -> str`` collaborator; None
                        disables signage validation
            catalog: Voice commands; loaded from the configured file if None
            label_table: Class-name table; loaded from the configured file if None
            scheduler: Timer scheduler with ``call_later(delay_s, callback)``
            clock: Monotonic time source in seconds
            ocr_in_background: Run OCR on a worker thread instead of inline
        """
        self.config = config or ProjectConfig()
        self.clock = clock
        self.events: "queue.Queue[Callable[[], None]]" = queue.Queue()

        self.scheduler = scheduler or ThreadingScheduler()
        set_dispatch = getattr(self.scheduler, "set_dispatch", None)
        if set_dispatch is not None:
            set_dispatch(self.post)

        if catalog is None:
            catalog = CommandCatalog.from_file(self.config.dialogue.resolved_catalog_path())

        self.microphone = MicrophoneArbiter()
        self.resolver = RouteDirectionResolver(self.config.dialogue.stations)
        self.dialogue = DialogueStateMachine(catalog, self.resolver)
        self.engine = PerceptionFusionEngine(self.config.perception, label_table)
        self.validator = SignageValidator(
            self.resolver,
            self.config.signage,
            model_input_size=self.config.perception.model_input_size,
            clock=clock,
        )
        self.listening = ListeningController(
            recognizer,
            self.microphone,
            self.config.speech,
            scheduler=self.scheduler,
            clock=clock,
            continuous=self.config.continuous_listening,
            is_speaking=lambda: self.arbiter.is_speaking,
        )
        self.arbiter = SpeechOutputArbiter(
            tts_sink or LoggingSpeechSink(on_done=self.notify_speech_done),
            self.config.speech,
            clock=clock,
            listening=self.listening,
        )

        self.ocr_reader = ocr_reader
        self._executor: Optional[ThreadPoolExecutor] = None
        if ocr_reader is not None and ocr_in_background:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="signage-ocr")

        self.switch_to_vision = False
        self.on_switch_to_vision: Optional[Callable[[], None]] = None
        self.vision_test_active = False
        self.on_vision_test_revoked: Optional[Callable[[], None]] = None
        self.microphone.on_revoke(MicOwner.VISION_TEST, self._on_vision_test_revoked)

        self.frames_processed = 0
        self.stop_flag = threading.Event()
        self.thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Consumer
    # ------------------------------------------------------------------

    def post(self, event: Callable[[], None]) -> None:
        """Queue an event for the consumer (any thread)."""
        self.events.put(event)

    def process_pending(self) -> int:
        """
        Run queued events on the calling thread until the queue is empty.

        Returns:
            Number of events processed
        """
        count = 0
        while True:
            try:
                event = self.events.get_nowait()
            except queue.Empty:
                return count
            event()
            count += 1

    def start(self) -> None:
        """Start the consumer thread."""
        if self.thread is not None and self.thread.is_alive():
            logger.warning("Session already running")
            return

        self.stop_flag.clear()
        self.thread = threading.Thread(target=self._run, name="guidance-session", daemon=True)
        self.thread.start()
        logger.info("Guidance session started")

    def stop(self) -> None:
        """Stop listening, the consumer thread and the OCR worker."""
        self.post(self.listening.stop_listening)
        self.stop_flag.set()
        if self.thread is not None:
            self.thread.join(timeout=2.0)
            self.thread = None
        else:
            self.process_pending()
        if self._executor is not None:
            self._executor.shutdown(wait=False)
        logger.info("Guidance session stopped")

    def _run(self) -> None:
        while True:
            try:
                event = self.events.get(timeout=0.1)
            except queue.Empty:
                if self.stop_flag.is_set():
                    return
                continue
            try:
                event()
            except Exception:
                logger.exception("Session event failed")

    # ------------------------------------------------------------------
    # Producers
    # ------------------------------------------------------------------

    def submit_frame(
        self,
        detections: Sequence[Detection],
        frame_width: int,
        frame_height: int,
        frame: Optional[np.ndarray] = None,
        frame_id: Optional[int] = None,
    ) -> None:
        """Detector output for one frame, plus the preview image for signage crops."""
        self.post(partial(self._handle_frame, list(detections), frame_width, frame_height, frame, frame_id))

    def submit_utterance(self, alternatives: Sequence[str], confidences: Optional[Sequence[float]] = None) -> None:
        """Final recognition result with its alternatives."""
        self.post(partial(self._handle_utterance, list(alternatives), confidences))

    def submit_partial(self, text: str) -> None:
        self.post(partial(self.listening.on_partial_result, text))

    def submit_recognition_error(self, error_code: Optional[int] = None) -> None:
        self.post(partial(self.listening.on_error, error_code))

    def notify_speech_done(self, utterance_id: Optional[str] = None) -> None:
        self.post(partial(self.arbiter.on_speech_done, utterance_id))

    def notify_speech_error(self, utterance_id: Optional[str] = None) -> None:
        self.post(partial(self.arbiter.on_speech_error, utterance_id))

    def start_listening(self) -> None:
        """User asked for the home dialogue; takes the microphone back if needed."""
        self.post(self._start_listening)

    def stop_dialogue(self) -> None:
        """Stop listening and cancel any scheduled restart."""
        self.post(self.listening.stop_listening)

    def enter_vision_test(self) -> None:
        """Camera-test flow takes the microphone, switching the home dialogue off."""
        self.post(self._enter_vision_test)

    def exit_vision_test(self) -> None:
        self.post(self._exit_vision_test)

    def snapshot(self) -> DialogueSnapshot:
        """Read-only view of the last committed dialogue state."""
        state = self.dialogue.state
        return DialogueSnapshot(
            origin=state.origin,
            destination=state.destination,
            awaiting_destination=state.awaiting_destination,
            stage=state.stage,
            last_response=state.last_response,
            is_listening=self.listening.is_listening,
            recognized_text=self.listening.recognized_text,
            error_message=self.listening.error_message,
            switch_to_vision=self.switch_to_vision,
        )

    # ------------------------------------------------------------------
    # Handlers (consumer thread only)
    # ------------------------------------------------------------------

    def _handle_frame(
        self,
        detections: List[Detection],
        frame_width: int,
        frame_height: int,
        frame: Optional[np.ndarray],
        frame_id: Optional[int],
    ) -> List[GuidanceResult]:
        results = self.engine.analyze(detections, frame_width, frame_height, frame_id)
        if not results:
            return results
        self.frames_processed += 1

        if self.dialogue.state.voice_guidance_enabled:
            self._announce_best(results)
        self._check_signage(results, frame)
        return results

    def _announce_best(self, results: Sequence[GuidanceResult]) -> bool:
        best = self.engine.select_best(results)
        if best is None or best.confidence < self.config.perception.min_announce_confidence:
            return False
        phrase = self.engine.format_phrase(best)
        if not phrase:
            return False
        return self.arbiter.speak(phrase, PhraseKind.PERCEPTION, key=best.cooldown_key)

    def _check_signage(self, results: Sequence[GuidanceResult], frame: Optional[np.ndarray]) -> None:
        if self.ocr_reader is None:
            return
        state = self.dialogue.state
        job = self.validator.begin(results, frame, state.origin, state.destination)
        if job is None:
            return

        if self._executor is None:
            report = None
            try:
                report = self.validator.run_ocr(job, self.ocr_reader)
            finally:
                self._finish_signage(job, report)
            return

        future = self._executor.submit(self.validator.run_ocr, job, self.ocr_reader)
        future.add_done_callback(lambda f: self.post(partial(self._on_ocr_done, job, f)))

    def _on_ocr_done(self, job: SignageJob, future: Future) -> None:
        report = None
        try:
            report = future.result()
        except Exception as e:
            logger.error(f"Signage OCR pass failed: {e}")
        self._finish_signage(job, report)

    def _finish_signage(self, job: SignageJob, report: Optional[OcrReport]) -> None:
        outcome = self.validator.complete(job, report)
        if outcome.phrase is None:
            return

        state = self.dialogue.state
        if (state.origin, state.destination) != (job.origin, job.destination):
            logger.debug("Route changed during OCR pass, discarding result")
            return
        if not state.voice_guidance_enabled:
            return
        if self.arbiter.speak(outcome.phrase, PhraseKind.NAVIGATION, key=outcome.cooldown_key):
            self.validator.record_announced(outcome)

    def _handle_utterance(
        self,
        alternatives: List[str],
        confidences: Optional[Sequence[float]],
    ) -> Optional[DialogueOutcome]:
        text = self.listening.on_final_result(alternatives, confidences)
        if text is None:
            self.listening.schedule_restart(self.config.speech.restart_delay_s)
            return None

        outcome = self.dialogue.handle_utterance(text)
        self.engine.target_label = self.dialogue.state.object_sought
        logger.info(f"Heard {text!r} -> {outcome.intent or 'no intent'}")

        if outcome.release_microphone:
            self.listening.stop_listening()

        self.arbiter.speak(outcome.response, PhraseKind.DIALOGUE)
        if outcome.switch_to_vision:
            self.arbiter.defer_until_done(self._signal_switch_to_vision)
        if not self.arbiter.is_speaking:
            self.listening.schedule_restart(self.config.speech.restart_delay_s)
        return outcome

    def _start_listening(self) -> bool:
        self.microphone.acquire(MicOwner.HOME_DIALOGUE, force=True)
        self.listening.set_continuous(self.config.continuous_listening)
        return self.listening.start_listening()

    def _enter_vision_test(self) -> None:
        self.microphone.acquire(MicOwner.VISION_TEST, force=True)
        self.vision_test_active = True

    def _exit_vision_test(self) -> None:
        self.microphone.release(MicOwner.VISION_TEST)
        self.vision_test_active = False

    def _on_vision_test_revoked(self) -> None:
        self.vision_test_active = False
        if self.on_vision_test_revoked is not None:
            self.on_vision_test_revoked()

    def _signal_switch_to_vision(self) -> None:
        self.switch_to_vision = True
        logger.info("Switching to vision flow")
        if self.on_switch_to_vision is not None:
            self.on_switch_to_vision()
