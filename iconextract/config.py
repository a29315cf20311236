# iconextract/config.py - CLI settings: flags > YAML config file > environment > defaults

from __future__ import annotations
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .sources import BACKENDS


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class Config:
    backend: str = "auto"
    out: str = "icons_out"
    png: bool = False
    manifest: bool = True
    quiet: bool = False


_TYPES = {f.name: (bool if f.type in ("bool", bool) else str) for f in fields(Config)}


def from_env(base: Optional[Config] = None) -> Config:
    cfg = base or Config()
    backend = os.getenv("ICONEXTRACT_BACKEND")
    out = os.getenv("ICONEXTRACT_OUT")
    if backend:
        cfg = replace(cfg, backend=backend)
    if out:
        cfg = replace(cfg, out=out)
    return cfg


def load_file(path, base: Optional[Config] = None) -> Config:
    """Overlay the keys of a YAML mapping onto `base`."""
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"cannot read config {p}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {p}: {e}") from e
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{p}: top level must be a mapping")
    return overlay(base or Config(), raw)


def overlay(cfg: Config, values: Dict[str, Any]) -> Config:
    unknown = sorted(set(values) - set(_TYPES))
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(unknown)}")
    for key, val in values.items():
        if not isinstance(val, _TYPES[key]):
            raise ConfigError(f"config key '{key}' must be {_TYPES[key].__name__}, got {type(val).__name__}")
    return replace(cfg, **values)


def validate(cfg: Config) -> Config:
    """Value checks, run once on the fully merged settings."""
    if cfg.backend not in BACKENDS:
        raise ConfigError(f"backend must be one of {', '.join(BACKENDS)}, got {cfg.backend!r}")
    return cfg
