"""Application configuration loaded from a TOML file."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass
class CrawlerConfig:
    """Crawler settings."""

    agent: str = ""


@dataclass
class HTTPServerConfig:
    """HTTP server settings."""

    host: str = ""
    port: int = 0
    url: str = ""


@dataclass
class DBConfig:
    """Database settings."""

    server: str = ""
    port: int = 0
    user: str = ""
    password: str = ""
    database: str = ""


@dataclass
class UIConfig:
    """User interface settings."""

    language: str = ""


@dataclass
class Config:
    """Whole application configuration; a section missing from the file is None."""

    crawler: CrawlerConfig | None = None
    http_server: HTTPServerConfig | None = None
    db: DBConfig | None = None
    ui: UIConfig | None = None


def _find_config_file(config_file: str | Path) -> Path:
    path = Path(config_file)
    for candidate in (path.with_name(path.name + ".toml"), path):
        if candidate.is_file():
            return candidate
    raise FileNotFoundError(
        f"config file {path.name!r} not found in {str(path.parent)!r}"
    )


def _lower_keys(table: dict[str, Any]) -> dict[str, Any]:
    return {str(key).lower(): value for key, value in table.items()}


def _coerce(value: Any, kind: type, key: str) -> Any:
    if kind is int:
        if isinstance(value, bool):
            return int(value)
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid integer for {key!r}: {value!r}") from exc
    if isinstance(value, (dict, list)):
        raise ValueError(f"invalid string for {key!r}: {value!r}")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _build(cls: type, table: Any, section: str) -> Any:
    if table is None:
        return None
    if not isinstance(table, dict):
        raise ValueError(f"section {section!r} must be a table")
    values = _lower_keys(table)
    kwargs = {}
    for name, field in cls.__dataclass_fields__.items():
        if name in values:
            kind = int if field.type in (int, "int") else str
            kwargs[name] = _coerce(values[name], kind, f"{section}.{name}")
    return cls(**kwargs)


def load_config(config_file: str | Path) -> Config:
    """Load the configuration from ``config_file`` or ``config_file.toml``."""
    path = _find_config_file(config_file)
    with path.open("rb") as fh:
        data = _lower_keys(tomllib.load(fh))

    return Config(
        crawler=_build(CrawlerConfig, data.get("crawler"), "crawler"),
        http_server=_build(HTTPServerConfig, data.get("server"), "server"),
        db=_build(DBConfig, data.get("database"), "database"),
        ui=_build(UIConfig, data.get("ui"), "ui"),
    )