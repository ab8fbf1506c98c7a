from .config import settings, SystemConfig
from .command_parser import parse
from .directives import Directive, DirectiveKind
from .errors import BrainError, FetchFailure, ParseFailure, MissingCollaborator
from .state_machine import SchedulerState, StateMachine
from .timers import CountdownTimer
__all__ = [
    "settings", "SystemConfig", "parse", "Directive", "DirectiveKind",
    "BrainError", "FetchFailure", "ParseFailure", "MissingCollaborator",
    "SchedulerState", "StateMachine", "CountdownTimer",
]

'''
This module forms the central nervous system of the Brain.
It handles configuration, the command grammar, timers and state management.
'''
