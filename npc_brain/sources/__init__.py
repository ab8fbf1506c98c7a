from npc_brain.core.config import SystemConfig
from npc_brain.core.errors import MissingCollaborator
from .base import ScriptSource, MessageSource, ScriptResponse, ChatMessage
from .script_client import HttpScriptSource
from .chat_reader import ChatPoller

def build_script_source(config: SystemConfig) -> ScriptSource:
    return HttpScriptSource(config.SCRIPT_SERVICE_URL, timeout=config.REQUEST_TIMEOUT_S)

def build_message_source(config: SystemConfig) -> MessageSource:
    if not config.CHAT_URL:
        raise MissingCollaborator("Chat poller is not configured (NPC_CHAT_URL is empty)")
    return ChatPoller(config.CHAT_URL, interval=config.CHAT_POLL_INTERVAL_S)

__all__ = [
    "build_script_source", "build_message_source", "ScriptSource", "MessageSource",
    "ScriptResponse", "ChatMessage", "HttpScriptSource", "ChatPoller",
]

'''
Factory functions for the external feeds.
The scheduler only sees the ScriptSource and MessageSource interfaces, so the
transport behind them can be swapped without touching the state machine.
'''
