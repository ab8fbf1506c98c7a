import asyncio
import logging
import aiohttp
from typing import Any, Dict
from pydantic import ValidationError

from npc_brain.character.base import Character, CharacterStatus

logger = logging.getLogger(__name__)

# The Production Client. Drives the character runtime through its HTTP bridge.


class CharacterBridgeClient(Character):
    """
    Talks to the character runtime's bridge server.

    Endpoints:
    - GET /status: {"speaking": bool, "performing_action": bool}
    - POST /text: {"text": <directive>}
    """

    def __init__(self, config: Dict[str, Any]):
        self.api_url = config.get("bridge_url", "http://localhost:5060").rstrip("/")
        self._identity = config.get("character_id", "npc-1")
        self.timeout = aiohttp.ClientTimeout(total=config.get("timeout", 10.0))

    @property
    def identity(self) -> str:
        return self._identity

    async def status(self) -> CharacterStatus:
        """
        Reads the busy signals in one round trip. An unreachable bridge or a
        garbled reply reports idle, the same as a character that has nothing left to do.
        """
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(f"{self.api_url}/status") as resp:
                    if resp.status != 200:
                        logger.error(f"❌ [CharacterBridge] Status returned {resp.status}")
                        return CharacterStatus()
                    return CharacterStatus.model_validate(await resp.json())
        except (aiohttp.ClientError, asyncio.TimeoutError, ValidationError, ValueError) as e:
            logger.error(f"❌ [CharacterBridge] Status failed: {e!r}")
            return CharacterStatus()

    async def is_speaking(self) -> bool:
        return (await self.status()).speaking

    async def is_performing_action(self) -> bool:
        return (await self.status()).performing_action

    async def submit(self, directive: str):
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            try:
                async with session.post(f"{self.api_url}/text", json={"text": directive}) as resp:
                    if resp.status != 200:
                        logger.error(f"❌ [CharacterBridge] Submit returned {resp.status} for: {directive}")
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(f"❌ [CharacterBridge] Connection failed: {e!r}")
