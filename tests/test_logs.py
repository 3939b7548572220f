"""Tests for es_bulk_loader.logs.

Run with:
    pytest tests/test_logs.py -v --cov=es_bulk_loader.logs --cov-report=term-missing
"""

from es_bulk_loader.logs import log


def test_log_writes_fields_to_stderr(capsys):
    log("info", "Batch inserted", inserted=1000, total=2500, batch_time_s=0.25)
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == "[info] Batch inserted inserted=1000 total=2500 batch_time_s=0.250\n"


def test_log_without_fields(capsys):
    log("warn", "Index does not exist. Nothing to delete.")
    assert capsys.readouterr().err == "[warn] Index does not exist. Nothing to delete.\n"
