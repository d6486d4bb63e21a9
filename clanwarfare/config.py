from __future__ import annotations
import json
import os
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: bool = False) -> bool:
    # Flags are JSON booleans ("true"/"false"), 1/0 is accepted too
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return bool(json.loads(raw.strip().lower()))
    except json.JSONDecodeError:
        raise ValueError(f"{name} must be true or false, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    api_base_url: str = os.getenv("API_BASE_URL", "https://api.destinyclanwarfare.com")
    bungie_api_base_url: str = os.getenv("BUNGIE_API_BASE_URL", "https://www.bungie.net/Platform")
    bungie_api_key: str = os.getenv("BUNGIE_API_KEY", "")
    user_agent: str = os.getenv("USER_AGENT", "ClanWarfare/0.1")
    # Paths
    data_dir: Path = Path(os.getenv("DATA_DIR", "data/cache"))
    snapshot_file: Path = Path(os.getenv("SNAPSHOT_FILE", "data/snapshot.json"))
    artifacts_dir: Path = Path(os.getenv("ARTIFACTS_DIR", ".cache"))
    dist_dir: Path = Path(os.getenv("DIST_DIR", "public"))
    # Tunables
    http_timeout_s: float = float(os.getenv("HTTP_TIMEOUT_S", "30"))
    upstream_attempts: int = int(os.getenv("UPSTREAM_ATTEMPTS", "3"))
    # Feature flags
    enable_match_history: bool = _flag("ENABLE_MATCH_HISTORY")
    enable_previous_leaderboards: bool = _flag("ENABLE_PREVIOUS_LEADERBOARDS")
    check_bungie_status: bool = _flag("CHECK_BUNGIE_STATUS")
    enable_enrollment: bool = _flag("ENABLE_ENROLLMENT")
    enable_alert: bool = _flag("ENABLE_ALERT")
    site_alert: str | None = os.getenv("SITE_ALERT") or None
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

SETTINGS = Settings()
