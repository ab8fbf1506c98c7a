import logging
from abc import ABC, abstractmethod
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# The Interface Contract for the controlled character.
# The scheduler only reads identity and status, and submits directives.

class CharacterStatus(BaseModel):
    """Busy signals reported by the character runtime."""
    speaking: bool = False
    performing_action: bool = False

    @property
    def idle(self) -> bool:
        return not (self.speaking or self.performing_action)

class Character(ABC):
    """
    Abstract Base Class for every character backend.
    Directives are fire-and-forget: completion is only observable through the busy predicates.
    """

    @property
    @abstractmethod
    def identity(self) -> str:
        """Stable id used to ask the script service for this character's lines."""
        pass

    @abstractmethod
    async def is_speaking(self) -> bool:
        pass

    @abstractmethod
    async def is_performing_action(self) -> bool:
        pass

    async def status(self) -> CharacterStatus:
        """Both busy signals at once. Backends with a single status call should override this."""
        return CharacterStatus(
            speaking=await self.is_speaking(),
            performing_action=await self.is_performing_action(),
        )

    @abstractmethod
    async def submit(self, directive: str):
        """Hands one directive string to the character. Returns without waiting for it to finish."""
        pass
