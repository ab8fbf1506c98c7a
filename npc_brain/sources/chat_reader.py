import asyncio
import logging
import aiohttp
from typing import Optional
from pydantic import ValidationError

from npc_brain.actors.base_actor import BaseActor
from npc_brain.sources.base import ChatMessage, MessageCallback, MessageSource

logger = logging.getLogger(__name__)

# The "Ears" for the audience. Polls the chat endpoint while the character is at the podium.


class ChatPoller(BaseActor, MessageSource):
    """
    Background poller for the live chat endpoint.
    Each successful poll yields zero or one message, handed to the registered callback
    as "<nickname>: <comment>".
    """

    def __init__(self, url: str, interval: float = 1.0, timeout: float = 10.0,
                 callback: Optional[MessageCallback] = None):
        BaseActor.__init__(self, name="ChatPoller")
        MessageSource.__init__(self)
        self.url = url
        self.interval = interval
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        if callback is not None:
            self.on_message(callback)

    async def setup(self):
        logger.info(f"[{self.name}] Started fetching chat from {self.url}")
        self.run_in_background(self._poll_loop())

    async def cleanup(self):
        logger.info(f"[{self.name}] Stopped fetching chat.")

    async def _poll_loop(self):
        while self._running:
            try:
                await self.poll_once()
            except Exception as e:
                logger.error(f"❌ [{self.name}] Poll error: {e}", exc_info=True)
            await asyncio.sleep(self.interval)

    async def poll_once(self) -> Optional[str]:
        """Runs one poll cycle. Returns the delivered message, if any."""
        logger.debug(f"[{self.name}] Fetching new chat message...")
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(self.url) as resp:
                    body = await resp.text()
                    if resp.status >= 400:
                        logger.error(f"❌ [{self.name}] Chat endpoint returned {resp.status}")
                        return None
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"❌ [{self.name}] Connection failed: {e!r}")
            return None
        except UnicodeDecodeError as e:
            logger.error(f"❌ [{self.name}] Chat body is not valid text: {e!r}")
            return None

        if not body.strip():
            logger.warning(f"⚠️ [{self.name}] Received empty response from server")
            return None

        return self._process(body)

    def _process(self, body: str) -> Optional[str]:
        logger.debug(f"[{self.name}] Received JSON response: {body}")
        try:
            chat = ChatMessage.model_validate_json(body)
        except ValidationError:
            logger.error(f"❌ [{self.name}] Failed to parse chat payload: {body[:200]}")
            return None

        if not chat.comment:
            logger.debug(f"[{self.name}] No new chat message (type={chat.type!r})")
            return None

        message = chat.render()
        logger.info(f"💬 [{self.name}] Chat message: {message}")
        if not self.deliver(message):
            return None
        return message
