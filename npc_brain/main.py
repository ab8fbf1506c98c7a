import asyncio
import logging
import signal
import sys
from typing import List, Optional

from npc_brain.core.config import SystemConfig, settings
from npc_brain.core.errors import MissingCollaborator
from npc_brain.actors.base_actor import BaseActor
from npc_brain.actors.scheduler import CommandScheduler
from npc_brain.character import build_character
from npc_brain.sources import build_message_source, build_script_source

logger = logging.getLogger("NpcBrain")

# This is the Orchestrator.
# It wires the character, the script service and the chat feed into the Command Scheduler,
# manages lifecycles and handles graceful shutdowns. It implements the Composition Root pattern.

def configure_logging(config: SystemConfig):
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.LOG_FILE:
        handlers.append(logging.FileHandler(config.LOG_FILE))
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        handlers=handlers
    )

class BrainOrchestrator:
    """
    The Main Process.
    Builds the collaborators and manages the lifecycle of the scheduler.
    """

    def __init__(self, config: SystemConfig = settings):
        self.config = config
        self.scheduler: Optional[CommandScheduler] = None
        self.actors: List[BaseActor] = []
        self._stopping = False

    async def bootstrap(self):
        """Initialize all components."""
        logger.info("🧠 Bootstrapping NPC Brain...")

        # 1. The Body
        character = build_character(self.config)

        # 2. The Writer
        script_source = build_script_source(self.config)

        # 3. The Audience (optional, the show goes on without it)
        try:
            message_source = build_message_source(self.config)
        except MissingCollaborator as e:
            logger.error(f"❌ {e}. Interactive mode disabled.")
            message_source = None

        self.scheduler = CommandScheduler(character, script_source, message_source, config=self.config)
        self.actors.append(self.scheduler)

        logger.info(f"🧩 Initialized {len(self.actors)} Actors for '{character.identity}'.")

    async def start(self):
        """Start all actors concurrently."""
        logger.info("🚀 Starting all Actors...")
        await asyncio.gather(*[actor.start() for actor in self.actors])
        logger.info("✨ System Online.")

    @property
    def stopping(self) -> bool:
        return self._stopping

    async def shutdown(self):
        """Graceful shutdown sequence."""
        if self._stopping:
            return
        self._stopping = True

        logger.info("🛑 Shutting down system...")

        for actor in reversed(self.actors):
            try:
                await actor.stop()
            except Exception as e:
                logger.error(f"Error stopping {actor.name}: {e}")

        logger.info("💀 System Offline.")

def handle_signals(orchestrator: BrainOrchestrator):
    """Register signal handlers for graceful exit (Ctrl+C)."""
    loop = asyncio.get_running_loop()

    def signal_handler():
        logger.info("⚠️ Signal received. Initiating shutdown...")
        asyncio.create_task(orchestrator.shutdown())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

async def main():
    orchestrator = BrainOrchestrator()

    try:
        handle_signals(orchestrator)
        await orchestrator.bootstrap()
        await orchestrator.start()

        # Keep the main loop alive until a signal is received
        while not orchestrator.stopping:
            await asyncio.sleep(1)

    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.critical(f"🔥 Critical Failure: {e}", exc_info=True)
    finally:
        await orchestrator.shutdown()

def run():
    configure_logging(settings)
    try:
        import uvloop
        uvloop.install()
        logger.info("🚀 Using uvloop for high-performance asyncio.")
    except ImportError:
        logger.warning("⚠️ uvloop not found. Using standard asyncio loop.")

    asyncio.run(main())

if __name__ == "__main__":
    run()
