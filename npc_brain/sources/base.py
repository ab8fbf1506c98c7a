import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# The Interface Contract. Defines what the scheduler needs from the outside world's feeds.

MessageCallback = Callable[[str], None]

class ScriptResponse(BaseModel):
    """Body returned by the script service."""
    script: List[str]

class ChatMessage(BaseModel):
    """One chat event as served by the chat endpoint."""
    type: str = ""
    nickname: str = ""
    comment: str = ""

    def render(self) -> str:
        """Format used in the interactive queue."""
        return f"{self.nickname}: {self.comment}"

class ScriptSource(ABC):
    """
    Fetch-on-demand provider of raw command lines for one character.
    """

    @abstractmethod
    async def request_script(self, actor_id: str) -> List[str]:
        """
        Returns the ordered raw command lines for `actor_id`.
        Raises FetchFailure on any transport or service error.
        """
        pass

class MessageSource(ABC):
    """
    Start/stop-able producer of free-text messages.
    Delivers each message to the registered callback, at any time.
    """

    def __init__(self):
        self._callback: Optional[MessageCallback] = None

    def on_message(self, callback: MessageCallback):
        """Registers the single consumer callback."""
        self._callback = callback

    def deliver(self, message: str) -> bool:
        if self._callback is None:
            logger.error(f"❌ No consumer registered. Dropping message: {message}")
            return False
        self._callback(message)
        return True

    @abstractmethod
    async def start(self):
        pass

    @abstractmethod
    async def stop(self):
        pass
