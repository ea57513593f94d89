"""Tests for the dialogue state machine."""

import pytest

from metroguide.dialogue import CommandCatalog, DialogueStage, DialogueStateMachine, Intent
from metroguide.dialogue.state_machine import ASK_REPEAT_STATION, NOT_UNDERSTOOD


@pytest.fixture
def machine(catalog, resolver) -> DialogueStateMachine:
    return DialogueStateMachine(catalog, resolver)


class TestOriginCapture:
    """Test "I am at X" handling."""

    def test_origin_scenario(self, machine):
        """Test origin capture from a punctuated Spanish utterance."""
        outcome = machine.handle_utterance("¡Estoy en la Estación Los Leones!")

        assert outcome.response == "Understood, you are at los leones. Where are you headed?"
        assert outcome.intent == Intent.LOCATE
        assert machine.state.origin == "los leones"
        assert machine.state.awaiting_destination is True
        assert machine.stage is DialogueStage.AWAITING_DESTINATION

    def test_origin_from_any_state(self, machine):
        """Test a new origin while guiding goes back to awaiting a destination."""
        machine.handle_utterance("estoy en franklin")
        machine.handle_utterance("I want to go to los leones")
        assert machine.stage is DialogueStage.GUIDING

        machine.handle_utterance("I am at pac")

        assert machine.state.origin == "pac"
        assert machine.stage is DialogueStage.AWAITING_DESTINATION


class TestDestinationCapture:
    """Test destination slot filling."""

    def test_free_form_destination(self, machine):
        """Test a free-form phrase completes the route and releases the mic."""
        machine.handle_utterance("estoy en franklin")
        outcome = machine.handle_utterance("I want to go to Los Leones")

        assert outcome.response == "Starting guidance to los leones."
        assert outcome.release_microphone is True
        assert machine.state.destination == "los leones"
        assert machine.state.awaiting_destination is False
        assert machine.stage is DialogueStage.GUIDING

    def test_bare_station_name(self, machine):
        """Test a bare station name is accepted once the origin is known."""
        machine.handle_utterance("estoy en franklin")
        outcome = machine.handle_utterance("Ñuñoa")

        assert outcome.response == "Starting guidance to nunoa."

    def test_free_form_needs_origin(self, machine):
        """Test free-form destinations are not accepted before an origin."""
        outcome = machine.handle_utterance("I want to go to los leones")

        assert outcome.response == NOT_UNDERSTOOD
        assert machine.state.destination is None
        assert machine.stage is DialogueStage.IDLE

    def test_catalog_go_to_station_extracts_slot(self, machine):
        """Test the catalog intent fills an empty station slot from the text."""
        machine.handle_utterance("estoy en franklin")
        outcome = machine.handle_utterance("go to station pac")

        assert outcome.intent == Intent.GO_TO_STATION
        assert machine.state.destination == "pac"

    def test_catalog_station_slot(self, machine):
        """Test an entry with a fixed station."""
        machine.handle_utterance("estoy en franklin")
        outcome = machine.handle_utterance("take me home")

        assert outcome.response == "Starting guidance to cerrillos."

    def test_missing_station_asks_again(self, machine):
        """Test an unfillable station slot does not execute the intent."""
        machine.handle_utterance("estoy en franklin")
        outcome = machine.handle_utterance("go to station")

        assert outcome.response == ASK_REPEAT_STATION
        assert outcome.understood is False
        assert machine.state.destination is None
        assert machine.stage is DialogueStage.AWAITING_DESTINATION

    def test_resume_same_destination(self, machine):
        """Test confirming the same destination again resumes instead of starting."""
        machine.handle_utterance("estoy en franklin")
        machine.handle_utterance("go to station los leones")
        outcome = machine.handle_utterance("go to station los leones")

        assert outcome.response == "Resuming guidance to los leones."
        assert outcome.release_microphone is False


class TestCatalogIntents:
    """Test the remaining intents."""

    def test_not_understood_keeps_state(self, machine):
        """Test an unmatched utterance changes nothing but the last response."""
        machine.handle_utterance("estoy en franklin")
        before = machine.state

        outcome = machine.handle_utterance("the weather is nice")

        assert outcome.response == NOT_UNDERSTOOD
        assert outcome.understood is False
        assert machine.state.origin == before.origin
        assert machine.stage is before.stage

    def test_blank_utterance(self, machine):
        """Test blank text produces nothing to say."""
        outcome = machine.handle_utterance("  ¿? ")

        assert outcome.response == ""
        assert outcome.understood is False

    def test_search_and_cancel(self, machine):
        """Test search sets the sought object and cancel clears it."""
        outcome = machine.handle_utterance("please find door")
        assert outcome.response == "Searching for puerta. Please wait."
        assert machine.state.object_sought == "puerta"

        outcome = machine.handle_utterance("cancel")
        assert outcome.response == "Operation cancelled."
        assert machine.state.object_sought is None

    def test_repeat(self, machine):
        """Test repeat returns the previous response."""
        machine.handle_utterance("estoy en franklin")
        outcome = machine.handle_utterance("repeat")

        assert outcome.response == "Understood, you are at franklin. Where are you headed?"

    def test_repeat_with_nothing_said(self, machine):
        """Test repeat before any response."""
        assert machine.handle_utterance("repeat").response == "There is nothing to repeat."

    def test_open_camera(self, machine):
        """Test the vision-flow signal is requested."""
        outcome = machine.handle_utterance("I want to open camera now")

        assert outcome.intent == Intent.OPEN_CAMERA
        assert outcome.response == "Opening camera."
        assert outcome.switch_to_vision is True

    def test_mode(self, machine):
        """Test guidance mode activation."""
        outcome = machine.handle_utterance("walking mode please")

        assert outcome.response == "Starting guidance in walking mode."
        assert machine.state.mode == "walking"

    def test_mute_unmute_status(self, machine):
        """Test voice guidance toggles and the status report."""
        machine.handle_utterance("find door")
        machine.handle_utterance("mute guidance")
        assert machine.state.voice_guidance_enabled is False
        assert machine.handle_utterance("guidance status").response == "Guidance off. Target: puerta."

        machine.handle_utterance("unmute guidance")
        assert machine.state.voice_guidance_enabled is True

    def test_clear_target(self, machine):
        """Test the sought object can be cleared."""
        machine.handle_utterance("find door")
        outcome = machine.handle_utterance("clear target")

        assert outcome.response == "Target cleared."
        assert machine.state.object_sought is None

    def test_canned_responses(self, machine):
        """Test confirm, modify and describe do not touch the route."""
        machine.handle_utterance("estoy en franklin")

        assert machine.handle_utterance("confirm").response == "Command confirmed."
        assert machine.handle_utterance("change").response == "What would you like to change?"
        assert machine.handle_utterance("describe").response == "Describing your surroundings."
        assert machine.state.origin == "franklin"
        assert machine.state.destination is None

    def test_empty_catalog(self, resolver):
        """Test the dialogue still captures a route without any catalog."""
        machine = DialogueStateMachine(CommandCatalog(), resolver)
        machine.handle_utterance("estoy en pac")

        assert machine.handle_utterance("destination franklin").response == "Starting guidance to franklin."


class TestExternalControl:
    """Test state changes driven from outside the dialogue."""

    def test_set_origin_with_destination(self, machine):
        """Test a picked origin completes a pending route."""
        machine.set_destination("Los Leones")
        machine.set_origin("franklin")

        assert machine.state.destination == "los leones"
        assert machine.stage is DialogueStage.GUIDING

    def test_clear_route(self, machine):
        """Test clearing the route keeps the origin."""
        machine.handle_utterance("estoy en franklin")
        machine.handle_utterance("destination pac")
        machine.clear_route()

        assert machine.state.origin == "franklin"
        assert machine.state.destination is None
        assert machine.stage is DialogueStage.AWAITING_DESTINATION

    def test_reset(self, machine):
        """Test reset returns to idle."""
        machine.handle_utterance("estoy en franklin")
        machine.reset()

        assert machine.stage is DialogueStage.IDLE
        assert machine.state.origin is None
