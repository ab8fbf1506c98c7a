import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Coroutine, List

logger = logging.getLogger(__name__)

# The Abstract Base Class that standardizes lifecycle management for every long-running loop.

class BaseActor(ABC):
    """
    Abstract Base Class for all System Actors.
    Standardized startup, shutdown and background task ownership.
    An actor may be started again after it has been stopped.
    """

    def __init__(self, name: str):
        self.name = name
        self._running = False
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        """Lifecycle hook: Start the actor. Starting a running actor is a no-op."""
        if self._running:
            return
        logger.info(f"🎬 [{self.name}] Starting actor...")
        self._running = True
        await self.setup()
        logger.info(f"✅ [{self.name}] Started successfully.")

    async def stop(self):
        """Lifecycle hook: Stop the actor. Stopping a stopped actor is a no-op."""
        if not self._running:
            return
        logger.info(f"🛑 [{self.name}] Stopping actor...")
        self._running = False

        # Cancel internal tasks and let them unwind
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        await self.cleanup()
        logger.info(f"👋 [{self.name}] Stopped.")

    @abstractmethod
    async def setup(self):
        """Initialize resources (sessions, loops) here."""
        pass

    @abstractmethod
    async def cleanup(self):
        """Release resources here."""
        pass

    def run_in_background(self, coroutine: Coroutine) -> asyncio.Task:
        """Helper to fire-and-forget async tasks within the actor scope."""
        task = asyncio.create_task(coroutine)
        self._tasks.append(task)
        task.add_done_callback(self._forget)
        return task

    def _forget(self, task: asyncio.Task):
        if task in self._tasks:
            self._tasks.remove(task)
