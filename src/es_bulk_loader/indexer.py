"""Loading the data file and pushing it through the _bulk API in fixed-size batches."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Sequence

from .client import ClusterError, ESClient
from .config import ConfigError
from .logs import log


class DataFileError(ConfigError):
    """Raised when the data file is missing, unreadable, or not a JSON array of objects."""


@dataclass(frozen=True)
class UploadSummary:
    total: int
    batches: int
    inserted: int
    elapsed_s: float


def load_documents(path: Path) -> List[Dict[str, Any]]:
    """Read the whole data file into memory as a list of JSON objects."""

    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except OSError as exc:
        raise DataFileError(f"reading data file {path}: {exc}") from exc
    except ValueError as exc:
        raise DataFileError(f"parsing data JSON {path}: {exc}") from exc

    if not isinstance(data, list):
        raise DataFileError(f"data file {path} must contain a JSON array, got {type(data).__name__}")
    for position, doc in enumerate(data):
        if not isinstance(doc, dict):
            raise DataFileError(
                f"data file {path}: element {position} is {type(doc).__name__}, expected an object"
            )
    return data


def iter_batches(docs: Sequence[Dict[str, Any]], size: int) -> Iterator[Sequence[Dict[str, Any]]]:
    """Yield contiguous slices of at most ``size`` documents, in order."""

    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    for start in range(0, len(docs), size):
        yield docs[start:start + size]


def build_bulk_payload(index: str, docs: Sequence[Dict[str, Any]]) -> str:
    """Build the newline-delimited action/document pairs for one bulk request."""

    meta = json.dumps({"index": {"_index": index}}, separators=(",", ":"))
    lines: List[str] = []
    for doc in docs:
        lines.append(meta)
        lines.append(json.dumps(doc, separators=(",", ":"), ensure_ascii=False))
    return "\n".join(lines) + "\n"


def upload_documents(
    es: ESClient,
    index: str,
    docs: Sequence[Dict[str, Any]],
    batch_size: int,
    clock: Callable[[], float] = time.perf_counter,
) -> UploadSummary:
    """Upload ``docs`` one batch at a time; the first failing batch aborts the rest."""

    total = len(docs)
    log("info", "Starting bulk insert", total=total)

    inserted = 0
    batches = 0
    started = clock()
    for batch in iter_batches(docs, batch_size):
        payload = build_bulk_payload(index, batch)
        batch_started = clock()
        try:
            es.bulk(payload)
        except ClusterError:
            log("error", "Bulk insert aborted", submitted=inserted, total=total, failed_batch=batches + 1)
            raise
        batch_time = clock() - batch_started

        inserted += len(batch)
        batches += 1
        log("info", "Batch inserted", inserted=inserted, total=total, batch_time_s=batch_time)

    elapsed = clock() - started
    log("info", "Bulk load completed", total_time_s=elapsed)
    return UploadSummary(total=total, batches=batches, inserted=inserted, elapsed_s=elapsed)


__all__ = [
    "DataFileError",
    "UploadSummary",
    "load_documents",
    "iter_batches",
    "build_bulk_payload",
    "upload_documents",
]
