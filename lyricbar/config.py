from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

APP_NAME = "lyricbar"


def _config_dir() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def _config_file() -> Path:
    return _config_dir() / "config.json"


def _cache_home() -> Path:
    xdg = os.getenv("XDG_CACHE_HOME")
    return Path(xdg) if xdg else Path.home() / ".cache"


@dataclass(frozen=True)
class AppConfig:
    # Storage
    cache_dir: Path
    config_dir: Path

    # Locale
    lang: str

    # Providers
    custom_command: str
    providers: tuple[str, ...]
    script_timeout_s: float | None
    workers: int

    # MPRIS
    preferred_player: str | None

    # Rendering
    refresh_hz: float
    use_alt_screen: bool


def load_config() -> AppConfig:
    config_dir = _config_dir()
    stored = _read_config_file(config_dir / "config.json")

    providers_env = os.getenv("LYRICBAR_PROVIDERS", "script")
    providers = tuple(s.strip() for s in providers_env.split(",") if s.strip())

    timeout = float(os.getenv("LYRICBAR_SCRIPT_TIMEOUT", "30"))

    return AppConfig(
        cache_dir=_cache_home() / APP_NAME / "lyrics",
        config_dir=config_dir,
        lang=_load_lang(stored),
        custom_command=_load_command(stored),
        providers=providers,
        script_timeout_s=timeout if timeout > 0 else None,
        workers=int(os.getenv("LYRICBAR_WORKERS", "2")),
        preferred_player=os.getenv("LYRICBAR_PLAYER") or None,
        refresh_hz=float(os.getenv("LYRICBAR_REFRESH_HZ", "4.0")),
        use_alt_screen=os.getenv("LYRICBAR_ALT_SCREEN", "1") not in ("0", "false", "False"),
    )


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def _load_lang(stored: dict[str, Any]) -> str:
    # Priority: config.json → LYRICBAR_LANG → "EN"
    raw = str(stored.get("lang") or "").upper()
    if raw in ("RU", "EN"):
        return raw
    env_lang = os.getenv("LYRICBAR_LANG")
    if env_lang and env_lang.upper() in ("RU", "EN"):
        return env_lang.upper()
    return "EN"


def _load_command(stored: dict[str, Any]) -> str:
    # Priority: config.json (even when empty) → LYRICBAR_COMMAND → disabled
    cmd = stored.get("custom_command")
    if isinstance(cmd, str):
        return cmd.strip()
    return os.getenv("LYRICBAR_COMMAND", "").strip()


def save_config(**values: str) -> Path:
    cfg_path = _config_file()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    data = _read_config_file(cfg_path)
    data.update(values)
    if "lang" in data:
        data["lang"] = str(data["lang"]).upper()
    cfg_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return cfg_path
