from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

import yaml
from dotenv import load_dotenv

from .errors import ConfigFileError
from .remote import DEFAULT_HOST_PATTERN

CONFIG_FILENAME = ".labconfig.yml"
TOKEN_ENV_VARS = ("LAB_PRIVATE_TOKEN", "GITLAB_TOKEN")


@dataclass
class LabConfig:
    private_token: str
    source_file: Path | None = None
    host_pattern: str = DEFAULT_HOST_PATTERN
    logging_json_enabled: bool = False
    logging_level: str = "WARNING"


def _home(home: Path | None) -> Path:
    return home if home is not None else Path.home()


def config_candidates(home: Path | None = None) -> list[Path]:
    """Search order: $LAB_CONFIG, ~/.labconfig.yml, ~/.lab/.labconfig.yml."""
    root = _home(home)
    candidates: list[Path] = []
    explicit = os.environ.get("LAB_CONFIG")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.append(root / CONFIG_FILENAME)
    candidates.append(root / ".lab" / CONFIG_FILENAME)
    return candidates


def _env_token() -> str | None:
    for name in TOKEN_ENV_VARS:
        value = os.environ.get(name)
        if value and value.strip():
            return value.strip()
    return None


def _read(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except OSError as exc:
        raise ConfigFileError(f"Failed read config file: {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigFileError(f"Invalid config file {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigFileError(f"Invalid config file {path}: expected a mapping")
    return cast(dict[str, Any], raw)


def create_config(home: Path | None = None, prompt: Callable[[str], str] = input) -> Path:
    """Ask for a private token and write it to ``~/.labconfig.yml``."""
    path = _home(home) / CONFIG_FILENAME
    try:
        token = prompt("Please input GitLab private token :").strip()
    except (EOFError, KeyboardInterrupt) as exc:
        raise ConfigFileError("Failed create config file: no token entered") from exc
    if not token:
        raise ConfigFileError("Failed create config file: empty private token")
    try:
        path.write_text(yaml.safe_dump({"private_token": token}), encoding="utf-8")
        path.chmod(0o600)
    except OSError as exc:
        raise ConfigFileError(f"Failed create config file: {exc}") from exc
    return path


def load_config(
    home: Path | None = None,
    *,
    prompt: Callable[[str], str] = input,
    dotenv_path: str | Path | None = None,
) -> LabConfig:
    """Load settings, bootstrapping a config file when none exists.

    Environment tokens (optionally from a ``.env`` file) take precedence over
    the file, and make the file optional.
    """
    env_file = Path(dotenv_path) if dotenv_path is not None else Path.cwd() / ".env"
    if env_file.is_file():
        load_dotenv(env_file)

    source = next((p for p in config_candidates(home) if p.is_file()), None)
    env_token = _env_token()
    if source is None and env_token is None:
        source = create_config(home, prompt)

    raw = _read(source) if source is not None else {}
    logging_config = cast(dict[str, Any], raw.get("logging", {}) or {})
    token = env_token or str(raw.get("private_token") or "").strip()
    if not token:
        raise ConfigFileError(f"No private_token configured in {source}")

    return LabConfig(
        private_token=token,
        source_file=source,
        host_pattern=str(raw.get("host_pattern") or DEFAULT_HOST_PATTERN),
        logging_json_enabled=bool(logging_config.get("json_enabled", False)),
        logging_level=str(logging_config.get("level", "WARNING")),
    )


__all__ = ["CONFIG_FILENAME", "LabConfig", "config_candidates", "create_config", "load_config"]
