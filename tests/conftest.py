"""Shared fakes for the scheduler tests: a virtual clock, a scripted character and in-memory feeds."""

import asyncio
from typing import List, Optional, Union

import pytest

from npc_brain.actors.scheduler import CommandScheduler
from npc_brain.character.base import Character
from npc_brain.core.config import SystemConfig
from npc_brain.sources.base import MessageSource, ScriptSource


class FakeClock:
    """Monotonic clock that only moves when someone sleeps on it."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float):
        self.now += seconds
        await asyncio.sleep(0)


class FakeCharacter(Character):
    """Stays busy for `busy_s` virtual seconds after every directive."""

    def __init__(self, clock: FakeClock, busy_s: float = 2.0, identity: str = "npc-test"):
        self._clock = clock
        self._identity = identity
        self.busy_s = busy_s
        self.busy_until = 0.0
        self.submitted: List[str] = []
        self.submitted_while_busy: List[str] = []
        self.identity_reads = 0

    @property
    def identity(self) -> str:
        self.identity_reads += 1
        return self._identity

    async def is_speaking(self) -> bool:
        return self._clock() < self.busy_until

    async def is_performing_action(self) -> bool:
        return False

    async def submit(self, directive: str):
        if self._clock() < self.busy_until:
            self.submitted_while_busy.append(directive)
        self.submitted.append(directive)
        self.busy_until = self._clock() + self.busy_s


class FakeScriptSource(ScriptSource):
    """Replays canned responses. An exception instance in the list is raised instead."""

    def __init__(self, clock: FakeClock, responses: Optional[List[Union[List[str], Exception]]] = None):
        self._clock = clock
        self.responses = list(responses or [])
        self.calls: List[str] = []
        self.call_times: List[float] = []

    async def request_script(self, actor_id: str) -> List[str]:
        self.calls.append(actor_id)
        self.call_times.append(self._clock())
        if not self.responses:
            return []
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeMessageSource(MessageSource):
    def __init__(self):
        super().__init__()
        self.starts = 0
        self.stops = 0
        self.active = False

    async def start(self):
        self.starts += 1
        self.active = True

    async def stop(self):
        if self.active:
            self.stops += 1
        self.active = False

    def push(self, message: str):
        self.deliver(message)


def make_config(**overrides) -> SystemConfig:
    values = dict(
        LOG_FILE=None,
        SCRIPT_COOLDOWN_S=15.0,
        COMMAND_DELAY_S=5.0,
        CHAT_MESSAGE_DELAY_S=1.0,
        INTERACTIVE_SESSION_S=60.0,
        ACTOR_POLL_INTERVAL_S=0.1,
        LOOP_TICK_S=0.5,
        INTERACTIVE_LOCATION="Twitch Podium",
    )
    values.update(overrides)
    return SystemConfig(**values)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def character(clock) -> FakeCharacter:
    return FakeCharacter(clock)


@pytest.fixture
def script_source(clock) -> FakeScriptSource:
    return FakeScriptSource(clock)


@pytest.fixture
def message_source() -> FakeMessageSource:
    return FakeMessageSource()


@pytest.fixture
def make_scheduler(clock, character, script_source, message_source):
    """Factory: pass config overrides, and `with_message_source=False` for a scripted-only scheduler."""

    def _make(with_message_source: bool = True, **overrides) -> CommandScheduler:
        return CommandScheduler(
            character,
            script_source,
            message_source if with_message_source else None,
            config=make_config(**overrides),
            clock=clock,
            sleep=clock.sleep,
        )

    return _make
