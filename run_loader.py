"""Convenience shim to run the bulk loader from an editable install (pip install -e .)."""

from __future__ import annotations

import sys

from es_bulk_loader.runner import main as loader_main


if __name__ == "__main__":
    raise SystemExit(loader_main(sys.argv[1:]))
