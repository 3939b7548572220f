"""Entry point wiring configuration, the Elasticsearch client, and the bulk upload."""

from __future__ import annotations

import sys
from typing import List, Optional

from .client import ClusterError, ESClient
from .config import ConfigError, LoaderSettings, UsageError, build_arg_parser, parse_args, resolve_settings
from .indexer import DataFileError, load_documents, upload_documents
from .lifecycle import IndexExistsError, apply_plan, build_create_index_body, plan_index_actions
from .logs import log


def _build_client(settings: LoaderSettings) -> ESClient:
    return ESClient(
        base_url=settings.url,
        username=settings.user,
        password=settings.password,
        api_key=settings.api_key,
        verify_tls=not settings.insecure_skip_verify,
    )


def load(settings: LoaderSettings, es: ESClient) -> None:
    """Run the lifecycle decision and the upload against an already-built client."""

    exists = es.index_exists(settings.index)
    plan = plan_index_actions(exists, add=settings.add, delete=settings.delete)
    body = build_create_index_body(settings.settings, settings.mappings) if plan.create else {}
    apply_plan(es, settings.index, plan, body)

    documents = load_documents(settings.data)
    upload_documents(es, settings.index, documents, settings.batch)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point; returns the process exit code."""

    args = parse_args(argv)
    try:
        settings = resolve_settings(args)
    except UsageError as exc:
        log("error", str(exc))
        build_arg_parser().print_usage(sys.stderr)
        return 1
    except ConfigError as exc:
        log("error", f"Error during configuration: {exc}")
        return 1

    client = _build_client(settings)
    try:
        load(settings, client)
    except ClusterError as exc:
        log("error", f"Error during {exc.operation}: {exc.detail}", index=settings.index)
        return 1
    except IndexExistsError as exc:
        log("error", str(exc), index=settings.index)
        return 1
    except DataFileError as exc:
        log("error", f"Error during data load: {exc}")
        return 1
    except ConfigError as exc:
        log("error", f"Error during index setup: {exc}")
        return 1
    return 0


def run() -> None:
    raise SystemExit(main())


__all__ = ["load", "main", "run"]
