from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict

# The wire contract toward the Character. Everything the scheduler sends is a Directive.

COMMAND_MARKER = "$"

class DirectiveKind(str, Enum):
    MOVE = "move"              # Walk somewhere, optionally talk about a topic
    SAY = "say"                # Speak literal text
    PASSTHROUGH = "passthrough"  # Already canonical, forwarded untouched
    CHAT = "chat"              # Audience message relayed during interactive mode
    UNKNOWN = "unknown"        # Grammar mismatch, forwarded as a degraded directive

class Directive(BaseModel):
    """
    A command string accepted by the Character, plus the fields the parser
    pulled out of it. The scheduler only ever sends `text`.
    """
    model_config = ConfigDict(frozen=True)

    text: str
    kind: DirectiveKind
    raw: str = ""
    marked: bool = False
    location: Optional[str] = None
    topic: Optional[str] = None
    emotion: Optional[str] = None
    error: Optional[str] = None

    @property
    def parsed(self) -> bool:
        return self.error is None

    def targets(self, location: str) -> bool:
        """True if this is a movement to exactly `location`."""
        return self.kind == DirectiveKind.MOVE and self.location == location

    @classmethod
    def chat(cls, message: str) -> "Directive":
        return cls(text=message, kind=DirectiveKind.CHAT, raw=message)

    def __str__(self) -> str:
        return self.text
