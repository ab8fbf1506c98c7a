from .base_actor import BaseActor
from .scheduler import CommandScheduler, SchedulerSnapshot

__all__ = ["BaseActor", "CommandScheduler", "SchedulerSnapshot"]

'''
The scripts in this module implement the Async-Actor Model.
Each actor owns its own background loop and is started and stopped by the orchestrator.
The CommandScheduler is the only actor allowed to submit directives to the Character.
'''
