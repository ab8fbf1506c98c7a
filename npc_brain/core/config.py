from enum import Enum
from typing import Optional
from pydantic_settings import BaseSettings

class EnvironmentType(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"

class SystemConfig(BaseSettings):
    """
    Global Configuration for the NPC Brain.

    Loads values from:
    1. Environment Variables (prefixed with NPC_)
    2. .env file in the root directory
    3. Default values defined here
    """

    # --- General ---
    ENV: EnvironmentType = EnvironmentType.DEVELOPMENT
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "brain.log"

    # --- Script Service (The Writer) ---
    SCRIPT_SERVICE_URL: str = "http://localhost:10000/projects/NPC-memory-storage/applications/TOPIC"
    REQUEST_TIMEOUT_S: float = 30.0

    # --- Chat Feed (The Audience) ---
    # Empty string disables the chat poller entirely
    CHAT_URL: str = "http://localhost:10000/projects/NPC-memory-storage/applications/TOPIC/read_twitch_chat"
    CHAT_POLL_INTERVAL_S: float = 1.0

    # --- Character (The Body) ---
    CHARACTER_BACKEND: str = "bridge"  # "bridge" | "console"
    CHARACTER_ID: str = "npc-1"
    CHARACTER_BRIDGE_URL: str = "http://localhost:5060"
    # Console backend only: simulated speaking rate
    CONSOLE_WORDS_PER_SECOND: float = 3.0

    # --- Scheduler Timing ---
    SCRIPT_COOLDOWN_S: float = 15.0
    COMMAND_DELAY_S: float = 5.0
    CHAT_MESSAGE_DELAY_S: float = 1.0
    INTERACTIVE_SESSION_S: float = 300.0
    ACTOR_POLL_INTERVAL_S: float = 0.1
    LOOP_TICK_S: float = 0.1

    # --- Scheduler Policy ---
    INTERACTIVE_LOCATION: str = "Twitch Podium"
    # Only queue script lines that carry the "$" command marker
    STRICT_MARKER: bool = False
    # Discard chat that piled up before the session started
    DROP_STALE_MESSAGES: bool = False

    class Config:
        env_prefix = "NPC_"
        env_file = ".env"
        case_sensitive = True

# Singleton Instance
settings = SystemConfig()
