import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Deque, List, Optional
from pydantic import BaseModel

from npc_brain.actors.base_actor import BaseActor
from npc_brain.character.base import Character
from npc_brain.core.command_parser import parse
from npc_brain.core.config import SystemConfig, settings
from npc_brain.core.directives import Directive
from npc_brain.core.errors import FetchFailure, MissingCollaborator
from npc_brain.core.state_machine import SchedulerState, StateMachine
from npc_brain.core.timers import Clock, CountdownTimer
from npc_brain.sources.base import MessageSource, ScriptSource

logger = logging.getLogger(__name__)

# The "Director". Pulls script from the writer, feeds it to the character one line at a time,
# and hands the microphone to chat while the character stands at the designated location.

Sleep = Callable[[float], Awaitable[None]]


class SchedulerSnapshot(BaseModel):
    """Point-in-time view of the scheduler, for logs and tests."""
    state: str
    scripted_pending: int
    chat_pending: int
    fetch_in_flight: bool
    cooldown_remaining: float
    session_remaining: float


class CommandScheduler(BaseActor):
    """
    Single-flow state machine that owns the Character.

    - IDLE: the scripted queue is empty and the cooldown has elapsed, so fetch.
    - COOLDOWN: the scripted queue is empty, wait for the cooldown before fetching again.
    - EXECUTING: send the next scripted directive, waiting for the Character to go idle around it.
    - INTERACTIVE: relay chat messages until the session timer elapses, then fetch straight away.

    Only `step()` touches the queues' consumer side and the Character, so directives are
    never submitted from two places at once.
    """

    def __init__(
        self,
        character: Character,
        script_source: ScriptSource,
        message_source: Optional[MessageSource] = None,
        config: SystemConfig = settings,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        super().__init__(name="CommandScheduler")
        self.character = character
        self.script_source = script_source
        self.message_source = message_source
        self.config = config
        self._sleep = sleep

        self.machine = StateMachine()
        self.scripted_queue: Deque[Directive] = deque()
        self.chat_queue: "asyncio.Queue[str]" = asyncio.Queue()
        self.cooldown = CountdownTimer(config.SCRIPT_COOLDOWN_S, clock)
        self.session = CountdownTimer(config.INTERACTIVE_SESSION_S, clock)

        self._fetch_in_flight = False
        self._actor_id: Optional[str] = None

        if message_source is not None:
            message_source.on_message(self.enqueue_chat_message)

    # --- Lifecycle ---

    async def setup(self):
        logger.info(f"[{self.name}] Driving character '{self.actor_id}'")
        if self.message_source is None:
            logger.error(f"❌ [{self.name}] {MissingCollaborator('No chat message source')}. "
                         f"Running in scripted-only mode.")
        self.run_in_background(self._run_loop())

    async def cleanup(self):
        self.session.cancel()
        await self._stop_message_source()

    async def restart(self):
        """Drops all queued work and starts a fresh session."""
        await self.stop()
        self.scripted_queue.clear()
        self._drain_chat_queue()
        self.cooldown.cancel()
        self.session.cancel()
        self.machine.reset()
        self._actor_id = None
        await self.start()

    async def _run_loop(self):
        logger.info(f"🔄 [{self.name}] Command loop started")
        while self._running:
            try:
                await self.step()
            except Exception as e:
                logger.error(f"❌ [{self.name}] Loop error: {e}", exc_info=True)
                await self._sleep(self.config.LOOP_TICK_S)

    # --- Public surface ---

    @property
    def state(self) -> SchedulerState:
        return self.machine.current

    @property
    def at_interactive_location(self) -> bool:
        """The location-trigger marker. Set exactly while INTERACTIVE."""
        return self.state is SchedulerState.INTERACTIVE

    @property
    def fetch_in_flight(self) -> bool:
        return self._fetch_in_flight

    @property
    def actor_id(self) -> str:
        # Read once per session
        if self._actor_id is None:
            self._actor_id = self.character.identity
        return self._actor_id

    def enqueue_chat_message(self, message: str):
        """Message source callback. Messages wait here until an interactive session drains them."""
        self.chat_queue.put_nowait(message)
        logger.debug(f"[{self.name}] Enqueued chat message: {message}")

    def snapshot(self) -> SchedulerSnapshot:
        return SchedulerSnapshot(
            state=self.state.name,
            scripted_pending=len(self.scripted_queue),
            chat_pending=self.chat_queue.qsize(),
            fetch_in_flight=self._fetch_in_flight,
            cooldown_remaining=self.cooldown.remaining,
            session_remaining=self.session.remaining,
        )

    async def step(self):
        """Runs one iteration of the state machine."""
        if self.state is SchedulerState.INTERACTIVE:
            await self._interactive_step()
        elif self.scripted_queue:
            await self._execute_next()
        elif self.cooldown.running:
            self.machine.transition_to(SchedulerState.COOLDOWN, "Queue empty, cooling down")
            await self._sleep(self.config.LOOP_TICK_S)
        else:
            self.machine.transition_to(SchedulerState.IDLE, "Queue empty, cooldown elapsed")
            await self._fetch_script()

    async def wait_for_character(self):
        """Returns once the Character is neither speaking nor performing an action."""
        while not await self._character_idle():
            await self._sleep(self.config.ACTOR_POLL_INTERVAL_S)
        logger.debug(f"[{self.name}] Character has finished speaking and performing actions.")

    async def _character_idle(self) -> bool:
        try:
            return (await self.character.status()).idle
        except Exception as e:
            # A failed read counts as idle
            logger.error(f"❌ [{self.name}] Status check failed: {e!r}. Treating character as idle.")
            return True

    # --- Scripted mode ---

    async def _fetch_script(self, reason: str = "Script queue empty"):
        if self._fetch_in_flight:
            logger.warning(f"⚠️ [{self.name}] Fetch already in flight, not starting another.")
            return

        self._fetch_in_flight = True
        logger.info(f"📡 [{self.name}] Fetching script ({reason})...")
        try:
            lines = await self.script_source.request_script(self.actor_id)
        except FetchFailure as e:
            logger.error(f"❌ [{self.name}] Error fetching script: {e}")
        else:
            queued = self._enqueue_script(lines)
            logger.info(f"📥 [{self.name}] Queued {queued} directive(s), {len(self.scripted_queue)} pending.")
        finally:
            self._fetch_in_flight = False
            self.cooldown.start()
            self.machine.transition_to(SchedulerState.COOLDOWN, "Fetch complete")

    def _enqueue_script(self, lines: List[str]) -> int:
        queued = 0
        for line in lines:
            if not line or not line.strip():
                continue

            directive = parse(line)
            if self.config.STRICT_MARKER and not directive.marked:
                logger.warning(f"⚠️ [{self.name}] Skipping unmarked line: {line!r}")
                continue
            if not directive.parsed:
                logger.error(f"❌ [{self.name}] {directive.error}. Forwarding as-is.")

            self.scripted_queue.append(directive)
            queued += 1
        return queued

    async def _execute_next(self):
        self.machine.transition_to(SchedulerState.EXECUTING, "Scripted directive pending")
        directive = self.scripted_queue.popleft()

        await self._deliver(directive)
        await self._sleep(self.config.COMMAND_DELAY_S)

        if directive.targets(self.config.INTERACTIVE_LOCATION):
            await self._enter_interactive()

    async def _deliver(self, directive: Directive):
        await self.wait_for_character()
        logger.info(f"🎬 [{self.name}] Sending {directive.kind.value} directive: {directive.text}")
        await self.character.submit(directive.text)
        await self.wait_for_character()

    # --- Interactive mode ---

    async def _enter_interactive(self):
        location = self.config.INTERACTIVE_LOCATION
        if self.message_source is None:
            logger.warning(f"⚠️ [{self.name}] Reached {location} but there is no chat source. Staying scripted.")
            return

        if not self.machine.transition_to(SchedulerState.INTERACTIVE, f"Reached {location}"):
            return

        if self.config.DROP_STALE_MESSAGES:
            dropped = self._drain_chat_queue()
            if dropped:
                logger.info(f"🧹 [{self.name}] Dropped {dropped} stale chat message(s).")

        self.session.start()
        logger.info(f"🎙️ [{self.name}] Character reached {location}. "
                    f"Relaying chat for {self.session.duration:.0f}s...")
        await self.message_source.start()

    async def _interactive_step(self):
        if self.session.expired:
            await self._end_interactive()
            return

        try:
            message = self.chat_queue.get_nowait()
        except asyncio.QueueEmpty:
            await self._sleep(self.config.LOOP_TICK_S)
            return

        logger.info(f"💬 [{self.name}] Processing chat message: {message}")
        # Sent verbatim ("nick: text") for the character to answer, not wrapped in Say"..."
        await self._deliver(Directive.chat(message))
        await self._sleep(self.config.CHAT_MESSAGE_DELAY_S)

    async def _end_interactive(self):
        logger.info(f"⏰ [{self.name}] Interactive session finished. Generating new script...")
        self.session.cancel()
        await self._stop_message_source()
        self.machine.transition_to(SchedulerState.IDLE, "Interactive session elapsed")
        # Refresh immediately, ignoring the cooldown this once
        await self._fetch_script(reason="Interactive session ended")

    async def _stop_message_source(self):
        if self.message_source is not None:
            await self.message_source.stop()

    def _drain_chat_queue(self) -> int:
        dropped = 0
        while True:
            try:
                self.chat_queue.get_nowait()
            except asyncio.QueueEmpty:
                return dropped
            dropped += 1
