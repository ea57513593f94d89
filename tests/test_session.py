"""Tests for the guidance session wiring."""

import pytest

from metroguide.config import ProjectConfig
from metroguide.dialogue import DialogueStage
from metroguide.perception import LabelTable
from metroguide.pipelines import GuidanceSession
from metroguide.speech import MicOwner, PhraseKind


@pytest.fixture
def session(sink, recognizer, fake_ocr, catalog, scheduler, clock) -> GuidanceSession:
    return GuidanceSession(
        ProjectConfig(),
        tts_sink=sink,
        recognizer=recognizer,
        ocr_reader=fake_ocr,
        catalog=catalog,
        label_table=LabelTable(),
        scheduler=scheduler,
        clock=clock,
        ocr_in_background=False,
    )


def finish_speech(session, sink):
    session.notify_speech_done(sink.last_id)
    session.process_pending()


def set_route(session, origin="franklin", destination="los leones"):
    session.dialogue.set_origin(origin)
    session.dialogue.set_destination(destination)


class TestDialogueFlow:
    """Test utterances through listening, dialogue and speech."""

    def test_origin_then_destination(self, session, sink, recognizer, scheduler):
        """Test the two-step route capture end to end."""
        session.start_listening()
        session.process_pending()
        assert recognizer.starts == 1

        session.submit_utterance(["estoy en franklin"])
        session.process_pending()
        assert sink.phrases == ["Understood, you are at franklin. Where are you headed?"]
        assert session.arbiter.is_speaking is True

        finish_speech(session, sink)
        scheduler.advance(1.0)
        assert recognizer.starts == 2

        session.submit_utterance(["I want to go to los leones"])
        session.process_pending()
        assert sink.phrases[-1] == "Starting guidance to los leones."

        finish_speech(session, sink)
        snapshot = session.snapshot()
        assert snapshot.origin == "franklin"
        assert snapshot.destination == "los leones"
        assert snapshot.stage is DialogueStage.GUIDING
        assert snapshot.is_listening is False
        assert scheduler.pending == []
        assert session.microphone.owner is MicOwner.NONE

    def test_nothing_heard_restarts(self, session, recognizer, scheduler, sink):
        """Test an empty result goes straight back to listening."""
        session.start_listening()
        session.submit_utterance(["", " "])
        session.process_pending()

        assert sink.spoken == []
        assert session.snapshot().recognized_text == "Not understood"
        scheduler.advance(1.0)
        assert recognizer.starts == 2

    def test_open_camera_waits_for_speech(self, session, sink):
        """Test the vision switch is raised only after the response is spoken."""
        raised = []
        session.on_switch_to_vision = lambda: raised.append(True)

        session.submit_utterance(["open camera"])
        session.process_pending()
        assert sink.phrases == ["Opening camera."]
        assert session.switch_to_vision is False

        finish_speech(session, sink)
        assert session.switch_to_vision is True
        assert raised == [True]

    def test_search_sets_engine_target(self, session, sink):
        """Test a search command filters perception to the sought object."""
        session.submit_utterance(["find door"])
        session.process_pending()

        assert session.engine.target_label == "puerta"

    def test_partial_result(self, session):
        """Test partial text only updates the display."""
        session.submit_partial("estoy en")
        session.process_pending()

        assert session.snapshot().recognized_text == "estoy en"
        assert session.dialogue.state.origin is None


class TestPerceptionAnnouncements:
    """Test frames through the fusion engine to the speaker."""

    def test_announce_best(self, session, sink, make_detection):
        """Test a confident detection is spoken with its cooldown key."""
        session.submit_frame([make_detection("puerta", 20, 100, 80, 400)], 640, 640, frame_id=1)
        session.process_pending()

        assert sink.phrases == ["puerta to the left, near."]
        assert session.arbiter.history[-1].kind is PhraseKind.PERCEPTION
        assert session.arbiter.history[-1].key == "puerta|FAR_LEFT|NEAR"
        assert session.frames_processed == 1

    def test_low_confidence_silent(self, session, sink, make_detection):
        """Test detections under the announce threshold are not spoken."""
        session.submit_frame([make_detection("puerta", 20, 100, 80, 400, confidence=0.5)], 640, 640)
        session.process_pending()

        assert sink.spoken == []

    def test_repeat_suppressed(self, session, sink, clock, make_detection):
        """Test the same object is not repeated within the cooldown."""
        for frame_id in (1, 2):
            session.submit_frame([make_detection("puerta", 20, 100, 80, 400)], 640, 640, frame_id=frame_id)
            session.process_pending()
            finish_speech(session, sink)
            clock.advance(1.0)

        assert len(sink.spoken) == 1

    def test_muted(self, session, sink, make_detection):
        """Test muted guidance keeps perception silent."""
        session.submit_utterance(["mute guidance"])
        session.process_pending()
        finish_speech(session, sink)

        session.submit_frame([make_detection("puerta", 20, 100, 80, 400)], 640, 640)
        session.process_pending()

        assert len(sink.spoken) == 1


class TestSignageGuidance:
    """Test sign detections through OCR to navigation phrases."""

    def test_navigation_phrase(self, session, sink, fake_ocr, frame, make_detection):
        """Test a matching sign is announced as a navigation phrase."""
        set_route(session)
        fake_ocr.default = "Dirección a Los Leones"

        session.submit_frame(
            [make_detection("senales_azules", 300, 100, 340, 400, confidence=0.5)], 640, 640, frame=frame
        )
        session.process_pending()

        assert sink.phrases == ["Now, continue straight."]
        assert session.arbiter.history[-1].kind is PhraseKind.NAVIGATION
        assert session.validator.last_nav is not None

    def test_wrong_direction(self, session, sink, fake_ocr, frame, make_detection):
        """Test a sign toward the other terminal warns the rider."""
        set_route(session)
        fake_ocr.default = "Dirección a Cerrillos"

        session.submit_frame(
            [make_detection("senales_azules", 300, 100, 340, 400, confidence=0.5)], 640, 640, frame=frame
        )
        session.process_pending()

        assert sink.phrases == ["Wrong platform direction. Head toward los leones."]

    def test_unreadable_sign_warns(self, session, sink, fake_ocr, frame, make_detection):
        """Test a sign that names no terminal is spoken as a correction."""
        set_route(session)
        fake_ocr.default = "Salida calle Providencia"

        session.submit_frame(
            [make_detection("senales_azules", 300, 100, 340, 400, confidence=0.5)], 640, 640, frame=frame
        )
        session.process_pending()

        assert sink.phrases == ["Wrong platform direction. Head toward los leones."]
        assert session.arbiter.history[-1].kind is PhraseKind.NAVIGATION

    def test_no_route_no_ocr(self, session, fake_ocr, frame, make_detection):
        """Test OCR never runs without a route."""
        session.submit_frame(
            [make_detection("senales_azules", 300, 100, 340, 400, confidence=0.5)], 640, 640, frame=frame
        )
        session.process_pending()

        assert fake_ocr.calls == 0

    def test_route_change_discards_result(self, session, sink, fake_ocr, frame, make_detection):
        """Test a result for an outdated route is never spoken."""
        set_route(session)
        fake_ocr.default = "Dirección a Los Leones"
        results = session.engine.analyze(
            [make_detection("senales_azules", 300, 100, 340, 400, confidence=0.5)], 640, 640
        )
        job = session.validator.begin(results, frame, "franklin", "los leones")
        report = session.validator.run_ocr(job, fake_ocr)

        session.dialogue.set_destination("cerrillos")
        session._finish_signage(job, report)

        assert sink.spoken == []
        assert session.validator.busy is False

    def test_background_ocr(self, sink, recognizer, fake_ocr, catalog, scheduler, clock, frame, make_detection):
        """Test OCR on the worker posts its result back to the queue."""
        session = GuidanceSession(
            ProjectConfig(),
            tts_sink=sink,
            recognizer=recognizer,
            ocr_reader=fake_ocr,
            catalog=catalog,
            label_table=LabelTable(),
            scheduler=scheduler,
            clock=clock,
        )
        set_route(session)
        fake_ocr.default = "Dirección a Los Leones"

        session.submit_frame(
            [make_detection("senales_azules", 300, 100, 340, 400, confidence=0.5)], 640, 640, frame=frame
        )
        session.process_pending()
        session._executor.shutdown(wait=True)
        session.process_pending()

        assert sink.phrases == ["Now, continue straight."]
        assert session.validator.busy is False


class TestMicrophoneHandover:
    """Test the vision test flow and the home dialogue sharing the mic."""

    def test_vision_test_takes_mic(self, session, recognizer):
        """Test entering the vision test switches listening off."""
        session.start_listening()
        session.enter_vision_test()
        session.process_pending()

        assert session.microphone.owner is MicOwner.VISION_TEST
        assert session.vision_test_active is True
        assert session.listening.continuous is False
        assert recognizer.stops == 1

    def test_home_dialogue_takes_mic_back(self, session, recognizer):
        """Test asking to listen revokes the vision test."""
        revoked = []
        session.on_vision_test_revoked = lambda: revoked.append(True)
        session.enter_vision_test()
        session.start_listening()
        session.process_pending()

        assert session.microphone.owner is MicOwner.HOME_DIALOGUE
        assert session.vision_test_active is False
        assert revoked == [True]
        assert recognizer.starts == 1

    def test_exit_vision_test(self, session):
        """Test leaving the vision test frees the mic."""
        session.enter_vision_test()
        session.exit_vision_test()
        session.process_pending()

        assert session.microphone.owner is MicOwner.NONE
        assert session.vision_test_active is False

    def test_stop(self, session, recognizer):
        """Test stopping without a consumer thread drains the queue."""
        session.start_listening()
        session.stop()

        assert session.listening.is_listening is False
        assert session.microphone.owner is MicOwner.NONE
