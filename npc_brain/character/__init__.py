from npc_brain.core.config import SystemConfig
from .base import Character, CharacterStatus
from .bridge_client import CharacterBridgeClient
from .console import ConsoleCharacter

def get_character(name: str, config: dict) -> Character:
    if name == "bridge":
        return CharacterBridgeClient(config)
    elif name == "console":
        return ConsoleCharacter(config)
    else:
        raise ValueError(f"Unknown character backend: {name}")

def build_character(config: SystemConfig) -> Character:
    return get_character(config.CHARACTER_BACKEND, {
        "character_id": config.CHARACTER_ID,
        "bridge_url": config.CHARACTER_BRIDGE_URL,
        "timeout": config.REQUEST_TIMEOUT_S,
        "words_per_second": config.CONSOLE_WORDS_PER_SECOND,
    })

__all__ = ["get_character", "build_character", "Character", "CharacterStatus", "CharacterBridgeClient", "ConsoleCharacter"]

'''
Factory pattern for easy instantiation.
Unifies the real character runtime (HTTP bridge) and the console dry-run backend
under the single Character interface the scheduler depends on.
'''
