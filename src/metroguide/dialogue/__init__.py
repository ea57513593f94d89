"""Dialogue module: command matching, slot filling and listening control."""
from .catalog import CommandCatalog, CommandCatalogEntry, Intent
from .listening import ListeningController, choose_alternative
from .slots import SLOT_PATTERNS, SlotPattern, extract_destination, extract_origin, extract_slot
from .state_machine import (
    DialogueOutcome,
    DialogueSnapshot,
    DialogueStage,
    DialogueState,
    DialogueStateMachine,
)

__all__ = [
    'CommandCatalog',
    'CommandCatalogEntry',
    'DialogueOutcome',
    'DialogueSnapshot',
    'DialogueStage',
    'DialogueState',
    'DialogueStateMachine',
    'Intent',
    'ListeningController',
    'SLOT_PATTERNS',
    'SlotPattern',
    'choose_alternative',
    'extract_destination',
    'extract_origin',
    'extract_slot',
]
