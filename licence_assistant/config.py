"""
Centralized configuration with environment variable overrides.

Office details, dialogue thresholds, and memory limits are configurable
here. Nothing office-specific is hardcoded in the dialogue or memory logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from licence_assistant.logging_context import build_log_handler

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class OfficeConfig:
    """Licensing office details read out by the assistant."""

    authority_name: str = os.getenv("AUTHORITY_NAME", "Driving Licence Authority")
    assistant_name: str = os.getenv("ASSISTANT_NAME", "Ava")
    address: str = os.getenv(
        "OFFICE_ADDRESS", "123 Government Complex, Main Road, City Center"
    )
    hours: str = os.getenv("OFFICE_HOURS", "9 AM to 5 PM, Monday to Saturday")
    closed_days: str = os.getenv("OFFICE_CLOSED_DAYS", "Sundays and public holidays")
    helpline: str = os.getenv("HELPLINE", "1800-123-4567")


@dataclass(frozen=True)
class DialogueConfig:
    """Parsing and prompting thresholds for the dialogue engine."""

    country_code: str = os.getenv("PHONE_COUNTRY_CODE", "91")
    max_offered_slots: int = _safe_int("MAX_OFFERED_SLOTS", "4")
    morning_cutoff_hour: int = _safe_int("MORNING_CUTOFF_HOUR", "12")
    evening_cutoff_hour: int = _safe_int("EVENING_CUTOFF_HOUR", "17")


@dataclass(frozen=True)
class MemoryConfig:
    """Limits and persistence settings for the user memory store."""

    history_limit: int = _safe_int("HISTORY_LIMIT", "50")
    pattern_window: int = _safe_int("PATTERN_WINDOW", "30")
    renewal_nudge_days: int = _safe_int("RENEWAL_NUDGE_DAYS", "30")
    max_suggestions: int = _safe_int("MAX_SUGGESTIONS", "3")
    store_path: str = os.getenv("MEMORY_STORE_PATH", "")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    office: OfficeConfig = field(default_factory=OfficeConfig)
    dialogue: DialogueConfig = field(default_factory=DialogueConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    agent_name: str = os.getenv("AGENT_NAME", "licence-assistant")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not config.dialogue.country_code.isdigit():
        raise ValueError(
            f"PHONE_COUNTRY_CODE must be digits only, got {config.dialogue.country_code!r}"
        )
    if config.dialogue.max_offered_slots < 1:
        raise ValueError(
            f"MAX_OFFERED_SLOTS must be >= 1, got {config.dialogue.max_offered_slots}"
        )
    if not 0 < config.dialogue.morning_cutoff_hour < config.dialogue.evening_cutoff_hour <= 24:
        raise ValueError(
            "MORNING_CUTOFF_HOUR must be before EVENING_CUTOFF_HOUR, got "
            f"{config.dialogue.morning_cutoff_hour} and {config.dialogue.evening_cutoff_hour}"
        )
    if config.memory.history_limit < 1:
        raise ValueError(
            f"HISTORY_LIMIT must be >= 1, got {config.memory.history_limit}"
        )
    if config.memory.pattern_window < 1:
        raise ValueError(
            f"PATTERN_WINDOW must be >= 1, got {config.memory.pattern_window}"
        )
    if config.memory.renewal_nudge_days < 0:
        raise ValueError(
            f"RENEWAL_NUDGE_DAYS must be >= 0, got {config.memory.renewal_nudge_days}"
        )
    if config.memory.max_suggestions < 1:
        raise ValueError(
            f"MAX_SUGGESTIONS must be >= 1, got {config.memory.max_suggestions}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        handlers=[build_log_handler()],
    )
    logger.info("Configuration loaded for '%s'", config.office.authority_name)
    return config


# Singleton instance
settings = load_config()
