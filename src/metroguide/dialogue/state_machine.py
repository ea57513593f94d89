"""
Dialogue State Machine - origin/destination slot filling over voice.

States: IDLE → AWAITING_DESTINATION → GUIDING

Matching order for every utterance:
1. "I am at X" captures the origin (from any state).
2. Catalog match (first entry in load order wins).
3. Free-form destination phrase, only once the origin is known.
4. Otherwise: not understood, state unchanged.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from ..navigation import RouteDirectionResolver
from ..utils.text import normalize_text
from .catalog import CommandCatalog, CommandCatalogEntry, Intent
from .slots import extract_destination, extract_origin, extract_slot

logger = logging.getLogger(__name__)

NOT_UNDERSTOOD = "I didn't understand. Where are you headed?"
ASK_REPEAT_STATION = "Sorry, I didn't catch the station. Please repeat it."


class DialogueStage(Enum):
    """Conversation states."""
    IDLE = "IDLE"
    AWAITING_DESTINATION = "AWAITING_DESTINATION"
    GUIDING = "GUIDING"


@dataclass
class DialogueState:
    """The single per-session dialogue state."""
    origin: Optional[str] = None
    destination: Optional[str] = None
    awaiting_destination: bool = False
    object_sought: Optional[str] = None
    mode: Optional[str] = None
    last_confirmed_destination: Optional[str] = None
    stage: DialogueStage = DialogueStage.IDLE
    last_response: str = ""
    voice_guidance_enabled: bool = True


@dataclass(frozen=True)
class DialogueOutcome:
    """What one utterance produced."""
    response: str
    intent: Optional[str] = None
    understood: bool = True
    release_microphone: bool = False  # Hand mic/speaker over to the guidance flow
    switch_to_vision: bool = False  # Raise once the response finished speaking


@dataclass(frozen=True)
class DialogueSnapshot:
    """Read-only view for UI observers."""
    origin: Optional[str]
    destination: Optional[str]
    awaiting_destination: bool
    stage: DialogueStage
    last_response: str
    is_listening: bool
    recognized_text: str
    error_message: Optional[str] = None
    switch_to_vision: bool = False


class DialogueStateMachine:
    """
    Voice-command dialogue over a shared DialogueState.

    Every utterance is handled against a copy of the state that is committed
    only when handling finishes, so observers never see a half-applied update.
    """

    def __init__(
        self,
        catalog: Optional[CommandCatalog] = None,
        resolver: Optional[RouteDirectionResolver] = None,
    ):
        self.catalog = catalog or CommandCatalog()
        self.resolver = resolver
        self.state = DialogueState()

    @property
    def stage(self) -> DialogueStage:
        return self.state.stage

    def handle_utterance(self, text: str) -> DialogueOutcome:
        """
        Process one recognized utterance.

        Args:
            text: Final recognized text (raw, un-normalized)

        Returns:
            DialogueOutcome with the response to speak (empty for blank input)
        """
        normalized = normalize_text(text)
        if not normalized:
            return DialogueOutcome(response="", understood=False)

        state = replace(self.state)

        origin = extract_origin(normalized)
        if origin:
            state.origin = origin
            state.awaiting_destination = True
            state.stage = DialogueStage.AWAITING_DESTINATION
            return self._commit(state, DialogueOutcome(
                response=f"Understood, you are at {origin}. Where are you headed?",
                intent=Intent.LOCATE,
            ))

        entry = self.catalog.match(normalized)
        if entry is not None:
            logger.debug(f"Utterance {normalized!r} matched intent {entry.intent}")
            return self._execute(state, entry, normalized)

        if state.origin:
            destination = extract_destination(normalized) or self._station_named(normalized)
            if destination:
                return self._set_destination(state, destination)

        logger.debug(f"No match for utterance {normalized!r}")
        return self._commit(state, DialogueOutcome(response=NOT_UNDERSTOOD, understood=False))

    def _station_named(self, normalized: str) -> Optional[str]:
        """The utterance itself when it is exactly a station name."""
        if self.resolver is not None and self.resolver.index_of(normalized) is not None:
            return normalized
        return None

    def _set_destination(self, state: DialogueState, destination: str) -> DialogueOutcome:
        state.destination = destination
        state.awaiting_destination = False
        if state.origin:
            state.stage = DialogueStage.GUIDING
        if state.last_confirmed_destination == destination:
            return self._commit(state, DialogueOutcome(
                response=f"Resuming guidance to {destination}.",
                intent=Intent.GO_TO_STATION,
            ))
        state.last_confirmed_destination = destination
        return self._commit(state, DialogueOutcome(
            response=f"Starting guidance to {destination}.",
            intent=Intent.GO_TO_STATION,
            release_microphone=True,
        ))

    def _execute(self, state: DialogueState, entry: CommandCatalogEntry, normalized: str) -> DialogueOutcome:
        intent = entry.intent

        if intent == Intent.GO_TO_STATION:
            station = entry.station or extract_slot(normalized)
            if not station:
                return self._commit(state, DialogueOutcome(
                    response=ASK_REPEAT_STATION, intent=intent, understood=False,
                ))
            return self._set_destination(state, normalize_text(station))

        if intent == Intent.SEARCH_OBJECT:
            state.object_sought = entry.object
            target = entry.object or "the object"
            response = f"Searching for {target}. Please wait."
        elif intent == Intent.LOCATE:
            if not entry.object:
                response = "You are at an unknown location."
            else:
                state.origin = entry.object
                state.awaiting_destination = True
                state.stage = DialogueStage.AWAITING_DESTINATION
                response = f"You are at {entry.object}. Where are you headed?"
        elif intent == Intent.ACTIVATE_GUIDANCE_MODE:
            state.mode = entry.mode
            response = f"Starting guidance in {entry.mode or 'default'} mode."
        elif intent == Intent.CONFIRM:
            response = "Command confirmed."
        elif intent == Intent.CANCEL:
            state.object_sought = None
            response = "Operation cancelled."
        elif intent == Intent.MODIFY:
            response = "What would you like to change?"
        elif intent == Intent.REPEAT:
            response = state.last_response or "There is nothing to repeat."
        elif intent == Intent.DESCRIBE_ENVIRONMENT:
            response = "Describing your surroundings."
        elif intent == Intent.OPEN_CAMERA:
            return self._commit(state, DialogueOutcome(
                response="Opening camera.", intent=intent, switch_to_vision=True,
            ))
        elif intent == Intent.MUTE_GUIDANCE:
            state.voice_guidance_enabled = False
            response = "Voice guidance off."
        elif intent == Intent.UNMUTE_GUIDANCE:
            state.voice_guidance_enabled = True
            response = "Voice guidance on."
        elif intent == Intent.CLEAR_TARGET:
            state.object_sought = None
            response = "Target cleared."
        elif intent == Intent.STATUS:
            on_off = "on" if state.voice_guidance_enabled else "off"
            response = f"Guidance {on_off}. Target: {state.object_sought or 'none'}."
        else:
            logger.warning(f"Catalog intent {intent!r} has no handler")
            response = "Intent not recognized."

        return self._commit(state, DialogueOutcome(response=response, intent=intent))

    def _commit(self, state: DialogueState, outcome: DialogueOutcome) -> DialogueOutcome:
        if outcome.response:
            state.last_response = outcome.response
        self.state = state
        return outcome

    def set_origin(self, name: Optional[str]):
        """Set the origin from outside the dialogue (e.g. a UI picker)."""
        state = replace(self.state, origin=name)
        if name and state.destination:
            state.awaiting_destination = False
            state.stage = DialogueStage.GUIDING
        elif name:
            state.awaiting_destination = True
            state.stage = DialogueStage.AWAITING_DESTINATION
        self.state = state

    def set_destination(self, name: str) -> DialogueOutcome:
        """Set the destination from outside the dialogue."""
        return self._set_destination(replace(self.state), normalize_text(name))

    def clear_route(self):
        """Forget the destination; the origin is kept."""
        stage = DialogueStage.AWAITING_DESTINATION if self.state.origin else DialogueStage.IDLE
        self.state = replace(
            self.state,
            destination=None,
            awaiting_destination=bool(self.state.origin),
            stage=stage,
        )

    def reset(self):
        """Back to IDLE with an empty state."""
        self.state = DialogueState()
