"""
Configuration loading for companion_access.

CompanionService takes a plain dict; load_config() builds that dict from
environment variables (and a .env file, if present).
"""

import os
from typing import Any

from dotenv import load_dotenv

DEFAULT_SQLITE_PATH = "~/.companion_access/companions.db"
DEFAULT_UNLIMITED_PLAN = "pro"
DEFAULT_QUOTA_TIERS: tuple[tuple[str, int], ...] = (
    ("3_companion_limit", 3),
    ("10_companion_limit", 10),
)


def parse_quota_tiers(raw: str) -> list[tuple[str, int]]:
    """
    Parse "feature=quota,feature=quota" into ordered (feature, quota) pairs.

    Order is kept: the first tier whose feature the caller holds wins.
    """
    tiers: list[tuple[str, int]] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        feature, sep, quota = part.partition("=")
        if not sep or not feature.strip():
            raise ValueError(f"Invalid quota tier {part!r}, expected feature=quota")
        value = int(quota)
        if value < 0:
            raise ValueError(f"Quota for {feature.strip()!r} must be >= 0, got {value}")
        tiers.append((feature.strip(), value))
    return tiers


def load_config() -> dict[str, Any]:
    """Load configuration from environment variables with defaults."""
    load_dotenv()

    raw_tiers = os.getenv("COMPANION_QUOTA_TIERS")
    tiers = parse_quota_tiers(raw_tiers) if raw_tiers else list(DEFAULT_QUOTA_TIERS)

    return {
        "sqlite_path": os.getenv("COMPANION_SQLITE_PATH", DEFAULT_SQLITE_PATH),
        "unlimited_plan": os.getenv("COMPANION_UNLIMITED_PLAN", DEFAULT_UNLIMITED_PLAN),
        "quota_tiers": tiers,
        "default_page_size": int(os.getenv("COMPANION_PAGE_SIZE", "10")),
        "recent_sessions_limit": int(os.getenv("COMPANION_RECENT_LIMIT", "10")),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
    }
