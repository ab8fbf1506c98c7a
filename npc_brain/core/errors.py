"""Error taxonomy for the brain. None of these are fatal to the scheduler loop."""


class BrainError(Exception):
    """Base class for all NPC Brain errors."""


class FetchFailure(BrainError):
    """The script service could not be reached or returned an unusable response."""


class ParseFailure(BrainError):
    """A raw script line does not match the command grammar."""

    def __init__(self, line: str, reason: str):
        super().__init__(f"{reason}: {line!r}")
        self.line = line
        self.reason = reason


class MissingCollaborator(BrainError):
    """A required external component is absent at session start."""
