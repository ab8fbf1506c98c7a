import asyncio
import logging
import aiohttp
from typing import List
from pydantic import ValidationError

from npc_brain.core.errors import FetchFailure
from npc_brain.sources.base import ScriptResponse, ScriptSource

logger = logging.getLogger(__name__)

# The "Writer" client. Asks the script service for the next batch of lines for a character.


class HttpScriptSource(ScriptSource):
    """
    POSTs {"npc1_id": <actor id>} to `<base_url>/generate_script`
    and expects {"script": [<raw line>, ...]} back.
    """

    def __init__(self, base_url: str, timeout: float = 30.0):
        self.api_url = f"{base_url.rstrip('/')}/generate_script"
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def request_script(self, actor_id: str) -> List[str]:
        payload = {"npc1_id": actor_id}
        logger.info(f"📨 [ScriptSource] Requesting script for '{actor_id}'...")

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.api_url, json=payload) as resp:
                    body = await resp.text()
                    if resp.status != 200:
                        raise FetchFailure(f"Script service returned {resp.status}: {body[:200]}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchFailure(f"Script service unreachable: {e!r}") from e

        logger.debug(f"[ScriptSource] Server response: {body}")

        try:
            response = ScriptResponse.model_validate_json(body)
        except ValidationError as e:
            raise FetchFailure(f"Malformed script response: {e.error_count()} error(s)") from e

        logger.info(f"📜 [ScriptSource] Received {len(response.script)} line(s).")
        return response.script
