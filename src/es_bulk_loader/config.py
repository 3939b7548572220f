"""Configuration helpers for the bulk loader.

Values are layered with the precedence command-line flags > ``ES_*``
environment variables > ``key=value`` config file > defaults.
"""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from dotenv import dotenv_values

DEFAULT_URL = "http://localhost:9200"
DEFAULT_BATCH_SIZE = 1000
ENV_PREFIX = "ES_"
CONFIG_ENV_VAR = f"{ENV_PREFIX}CONFIG"

# flag name -> LoaderSettings field
FLAG_FIELDS: Dict[str, str] = {
    "url": "url",
    "insecureSkipVerify": "insecure_skip_verify",
    "index": "index",
    "data": "data",
    "settings": "settings",
    "mappings": "mappings",
    "batch": "batch",
    "add": "add",
    "delete": "delete",
    "user": "user",
    "pass": "password",
    "apiKey": "api_key",
}

BOOL_FIELDS = {"insecure_skip_verify", "add", "delete"}
PATH_FIELDS = {"data", "settings", "mappings"}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class ConfigError(ValueError):
    """Raised when the resolved configuration cannot be used."""


class UsageError(ConfigError):
    """Raised when a required value is missing; callers should print usage."""


@dataclass(frozen=True)
class LoaderSettings:
    """Resolved runtime settings for one bulk-load run."""

    url: str
    insecure_skip_verify: bool
    index: str
    data: Path
    settings: Optional[Path]
    mappings: Optional[Path]
    batch: int
    add: bool
    delete: bool
    user: Optional[str]
    password: Optional[str]
    api_key: Optional[str]


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the CLI parser; every flag defaults to None so unset values fall through."""

    parser = argparse.ArgumentParser(
        prog="es-bulk-loader",
        description="Bulk-load a JSON array of documents into an Elasticsearch index.",
    )
    parser.add_argument("-config", "--config", help="path to a key=value config file")
    parser.add_argument("-url", "--url", help=f"Elasticsearch URL (default {DEFAULT_URL})")
    parser.add_argument(
        "-insecureSkipVerify",
        "--insecureSkipVerify",
        dest="insecure_skip_verify",
        nargs="?",
        const=True,
        default=None,
        type=_flag_bool,
        metavar="BOOL",
        help="skip TLS certificate verification",
    )
    parser.add_argument("-index", "--index", help="Elasticsearch index name (required)")
    parser.add_argument("-data", "--data", help="path to the JSON data file, an array of objects (required)")
    parser.add_argument("-settings", "--settings", help="path to index settings JSON file")
    parser.add_argument("-mappings", "--mappings", help="path to index mappings JSON file")
    parser.add_argument(
        "-batch",
        "--batch",
        type=int,
        help=f"documents per bulk request (default {DEFAULT_BATCH_SIZE})",
    )
    parser.add_argument(
        "-add",
        "--add",
        nargs="?",
        const=True,
        default=None,
        type=_flag_bool,
        metavar="BOOL",
        help="add documents to an existing index without modifying it",
    )
    parser.add_argument(
        "-delete",
        "--delete",
        nargs="?",
        const=True,
        default=None,
        type=_flag_bool,
        metavar="BOOL",
        help="delete the index if it exists, then recreate it",
    )
    parser.add_argument("-user", "--user", help="username for basic auth")
    parser.add_argument("-pass", "--pass", dest="password", help="password for basic auth")
    parser.add_argument("-apiKey", "--apiKey", dest="api_key", help="Elasticsearch API key")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; accepts argv overrides for testing."""

    parser = build_arg_parser()
    return parser.parse_args(argv)


def parse_bool(raw: str, key: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"invalid boolean for {key}: {raw!r}")


def _flag_bool(raw: str) -> bool:
    try:
        return parse_bool(raw, "flag")
    except ConfigError as exc:
        raise argparse.ArgumentTypeError(f"invalid boolean value: {raw!r}") from exc


def _coerce(field: str, raw: str, key: str) -> Any:
    if field in BOOL_FIELDS:
        return parse_bool(raw, key)
    if field == "batch":
        try:
            return int(raw.strip())
        except ValueError as exc:
            raise ConfigError(f"invalid integer for {key}: {raw!r}") from exc
    return raw


def load_config_file(path: str | Path) -> Dict[str, Any]:
    """Read a ``key=value`` config file into settings fields.

    Keys are flag names (``url``, ``apiKey``, ...), matched case-insensitively.
    """

    config_path = Path(path).expanduser()
    if not config_path.is_file():
        raise ConfigError(f"config file not found: {config_path}")

    by_lower = {flag.lower(): (flag, field) for flag, field in FLAG_FIELDS.items()}
    values: Dict[str, Any] = {}
    try:
        entries = dotenv_values(config_path, interpolate=False)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"reading config file {config_path}: {exc}") from exc
    for key, raw in entries.items():
        match = by_lower.get(key.strip().lower())
        if match is None:
            raise ConfigError(f"unknown key {key!r} in config file {config_path}")
        if raw is None or raw == "":
            continue
        flag, field = match
        values[field] = _coerce(field, raw, f"{flag} ({config_path})")
    return values


def env_values(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect ``ES_<FLAG>`` variables (flag name upper-cased) into settings fields."""

    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = {}
    for flag, field in FLAG_FIELDS.items():
        name = f"{ENV_PREFIX}{flag.upper()}"
        raw = environ.get(name)
        if raw is None or raw == "":
            continue
        values[field] = _coerce(field, raw, name)
    return values


def _flag_values(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        field: getattr(args, field)
        for field in FLAG_FIELDS.values()
        if getattr(args, field, None) is not None
    }


def resolve_settings(
    args: Optional[argparse.Namespace] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> LoaderSettings:
    """Merge flags, environment, config file and defaults, then validate."""

    args = args or parse_args()
    environ = os.environ if environ is None else environ

    merged: Dict[str, Any] = {
        "url": DEFAULT_URL,
        "insecure_skip_verify": False,
        "batch": DEFAULT_BATCH_SIZE,
        "add": False,
        "delete": False,
    }
    config_path = args.config or environ.get(CONFIG_ENV_VAR)
    if config_path:
        merged.update(load_config_file(config_path))
    merged.update(env_values(environ))
    merged.update(_flag_values(args))

    user = merged.get("user") or None
    password = merged.get("password") or None
    api_key = merged.get("api_key") or None
    if (user or password) and api_key:
        raise ConfigError("Cannot use both basic auth and API key. Choose one method.")

    missing = [flag for flag in ("index", "data") if not merged.get(FLAG_FIELDS[flag])]
    if missing:
        raise UsageError("missing required flag(s): " + ", ".join(f"-{flag}" for flag in missing))

    batch = merged["batch"]
    if batch < 1:
        raise ConfigError(f"batch size must be a positive integer, got {batch}")

    def _path(field: str) -> Optional[Path]:
        value = merged.get(field)
        return Path(value).expanduser() if value else None

    return LoaderSettings(
        url=merged["url"],
        insecure_skip_verify=bool(merged["insecure_skip_verify"]),
        index=merged["index"],
        data=Path(merged["data"]).expanduser(),
        settings=_path("settings"),
        mappings=_path("mappings"),
        batch=int(batch),
        add=bool(merged["add"]),
        delete=bool(merged["delete"]),
        user=user,
        password=password,
        api_key=api_key,
    )


__all__ = [
    "DEFAULT_URL",
    "DEFAULT_BATCH_SIZE",
    "ENV_PREFIX",
    "CONFIG_ENV_VAR",
    "FLAG_FIELDS",
    "ConfigError",
    "UsageError",
    "LoaderSettings",
    "build_arg_parser",
    "parse_args",
    "parse_bool",
    "load_config_file",
    "env_values",
    "resolve_settings",
]
