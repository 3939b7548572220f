"""Index lifecycle: deciding whether to delete/create, and the create-index body."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .client import ESClient
from .config import ConfigError
from .logs import log

NOTHING_TO_DELETE = "Index does not exist. Nothing to delete."
INDEX_EXISTS = "Index exists. Use -delete to recreate or -add to append."


class IndexExistsError(RuntimeError):
    """Raised when the index exists and neither -add nor -delete was given."""


@dataclass(frozen=True)
class IndexPlan:
    """What to do with the target index before loading documents."""

    delete: bool
    create: bool
    message: str
    warning: Optional[str] = None


def plan_index_actions(exists: bool, add: bool, delete: bool) -> IndexPlan:
    """Map (exists, add, delete) to the delete/create actions for the run."""

    if exists:
        if add and delete:
            return IndexPlan(True, True, "Deleting and recreating index before adding documents")
        if delete:
            return IndexPlan(True, True, "Deleting index")
        if add:
            return IndexPlan(False, False, "Appending documents to existing index")
        raise IndexExistsError(INDEX_EXISTS)

    warning = NOTHING_TO_DELETE if delete else None
    if add:
        return IndexPlan(False, True, "Creating index to append documents", warning)
    return IndexPlan(False, True, "Creating index before loading data", warning)


def load_json_object(path: Path, what: str) -> Dict[str, Any]:
    """Parse a settings or mappings file that must hold a single JSON object."""

    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except OSError as exc:
        raise ConfigError(f"reading {what} file {path}: {exc}") from exc
    except ValueError as exc:
        raise ConfigError(f"parsing {what} file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{what} file {path} must contain a JSON object, got {type(data).__name__}")
    return data


def build_create_index_body(
    settings_path: Optional[Path] = None,
    mappings_path: Optional[Path] = None,
) -> Dict[str, Any]:
    """Return ``{"settings": ..., "mappings": ...}``, empty objects when no file is given."""

    settings = load_json_object(settings_path, "settings") if settings_path else {}
    mappings = load_json_object(mappings_path, "mappings") if mappings_path else {}
    return {"settings": settings, "mappings": mappings}


def apply_plan(es: ESClient, index: str, plan: IndexPlan, body: Dict[str, Any]) -> None:
    if plan.warning:
        log("warn", plan.warning, index=index)
    log("info", plan.message, index=index)

    if plan.delete:
        es.delete_index(index)
        log("info", "Index deleted", index=index)
    if plan.create:
        es.create_index(index, body)
        log("info", "Index created", index=index)


__all__ = [
    "NOTHING_TO_DELETE",
    "INDEX_EXISTS",
    "IndexExistsError",
    "IndexPlan",
    "plan_index_actions",
    "load_json_object",
    "build_create_index_body",
    "apply_plan",
]
