"""Configuration loading helpers for bookmark-keeper."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import yaml

from .models import GlobalConfig

HOME_ENV_VAR = "BOOKMARK_KEEPER_HOME"
GLOBAL_CONFIG_FILENAME = "global_config.yaml"


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


def apply_env_overrides(config: GlobalConfig, environ: Mapping[str, str] | None = None) -> GlobalConfig:
    """Overlay REDIS_URL / REDIS_ADDR / REDIS_DB / REDIS_PASSWORD onto ``config``."""

    env = os.environ if environ is None else environ
    updates: dict[str, object] = {}
    if env.get("REDIS_URL"):
        updates["url"] = env["REDIS_URL"]
    addr = env.get("REDIS_ADDR")
    if addr:
        host, _, port = addr.rpartition(":")
        if host and port.isdigit():
            updates["host"] = host
            updates["port"] = int(port)
        else:
            updates["host"] = addr
    db = env.get("REDIS_DB")
    if db and db.isdigit():
        updates["db"] = int(db)
    if env.get("REDIS_PASSWORD"):
        updates["password"] = env["REDIS_PASSWORD"]
    if not updates:
        return config
    redis_cfg = config.redis.model_validate({**config.redis.model_dump(), **updates})
    return config.model_copy(update={"redis": redis_cfg})


@dataclass(slots=True)
class ConfigLocator:
    """Resolve the data and log directories from the tool's home directory."""

    project_root: Path | None = None
    data_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get(HOME_ENV_VAR)
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path.home() / ".bookmark-keeper").expanduser().resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def global_config_path(self) -> Path:
        return self.data_dir / GLOBAL_CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._global_cache: GlobalConfig | None = None

    def load_global_config(self) -> GlobalConfig:
        """Load the stored config (creating defaults on first use) with env overrides applied."""

        if self._global_cache is not None:
            return self._global_cache
        path = self.locator.global_config_path()
        if path.exists():
            payload = _read_file(path)
            global_cfg = GlobalConfig.model_validate(payload)
        else:
            global_cfg = GlobalConfig()
            self.save_global_config(global_cfg)
        global_cfg = apply_env_overrides(global_cfg)
        self._global_cache = global_cfg
        return global_cfg

    def save_global_config(self, config: GlobalConfig) -> None:
        path = self.locator.global_config_path()
        payload = config.model_dump(mode="json")
        _write_file(path, payload)
        self._global_cache = config


__all__ = ["ConfigLocator", "ConfigRepository", "HOME_ENV_VAR", "apply_env_overrides"]
