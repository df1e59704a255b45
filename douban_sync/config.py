"""Environment-driven configuration."""
import os
from pathlib import Path

from douban_sync.errors import ConfigError
from douban_sync.fetcher import feed_url

DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; douban-sync/0.1)"
DEFAULT_RETENTION_DAYS = 30
STATE_FILE_NAME = ".douban-rss-state.json"


def default_output_dir() -> Path:
    return Path.home() / "obsidian-vault" / "豆瓣"


def default_log_dir() -> Path:
    return Path.home() / ".douban-sync" / "logs"


def _number(env, name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def load_config(env=None, require_user: bool = True) -> dict:
    """Build the config dict from environment variables.

    Args:
        env: Mapping to read instead of os.environ (tests)
        require_user: Raise ConfigError when DOUBAN_USER is unset

    Returns:
        Nested dict with douban, paths, feeds and logging sections
    """
    env = os.environ if env is None else env

    user = (env.get("DOUBAN_USER") or "").strip()
    if not user and require_user:
        raise ConfigError("DOUBAN_USER env var is required")

    output_dir = Path(env.get("OBSIDIAN_DIR") or default_output_dir()).expanduser()
    state_file = Path(env.get("STATE_FILE") or output_dir / STATE_FILE_NAME).expanduser()
    log_dir = Path(env.get("DOUBAN_LOG_DIR") or default_log_dir()).expanduser()

    return {
        "douban": {
            "user": user,
            "feed_url": feed_url(user) if user else None,
        },
        "paths": {
            "output_dir": output_dir,
            "state_file": state_file,
            "log_dir": log_dir,
        },
        "feeds": {
            "request_timeout": _number(env, "REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT, float),
            "user_agent": env.get("USER_AGENT") or DEFAULT_USER_AGENT,
        },
        "logging": {
            "retention_days": _number(env, "LOG_RETENTION_DAYS", DEFAULT_RETENTION_DAYS, int),
        },
    }
