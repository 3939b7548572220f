"""Tests for es_bulk_loader.indexer covering data loading, batching, and bulk uploads.

Run with:
    pytest tests/test_indexer.py --maxfail=1 -v --cov=es_bulk_loader.indexer --cov-report=term-missing
"""

import itertools
import json
from unittest.mock import MagicMock

import pytest

from es_bulk_loader import indexer
from es_bulk_loader.client import ClusterError
from es_bulk_loader.indexer import DataFileError


def _docs(count):
    return [{"id": i, "title": f"doc {i}"} for i in range(count)]


def _payload_docs(payload):
    lines = payload.split("\n")
    assert lines[-1] == ""
    return [json.loads(line) for line in lines[1:-1:2]]


def test_load_documents_reads_array(tmp_path):
    data = tmp_path / "data.json"
    data.write_text(json.dumps(_docs(3)))
    assert indexer.load_documents(data) == _docs(3)


def test_load_documents_accepts_empty_array(tmp_path):
    data = tmp_path / "data.json"
    data.write_text("[]")
    assert indexer.load_documents(data) == []


@pytest.mark.parametrize(
    "content, message",
    [
        ("[{\"id\": 1},", "parsing data JSON"),
        ("{\"id\": 1}", "must contain a JSON array"),
        ("[{\"id\": 1}, 2]", "element 1 is int"),
    ],
)
def test_load_documents_rejects_bad_content(tmp_path, content, message):
    data = tmp_path / "data.json"
    data.write_text(content)
    with pytest.raises(DataFileError, match=message):
        indexer.load_documents(data)


def test_load_documents_missing_file(tmp_path):
    with pytest.raises(DataFileError, match="reading data file"):
        indexer.load_documents(tmp_path / "missing.json")


@pytest.mark.parametrize(
    "count, size, expected",
    [(0, 1000, 0), (1, 1000, 1), (1000, 1000, 1), (1001, 1000, 2), (2500, 1000, 3), (7, 1, 7)],
)
def test_iter_batches_count_and_order(count, size, expected):
    docs = _docs(count)
    batches = list(indexer.iter_batches(docs, size))
    assert len(batches) == expected
    assert all(len(batch) <= size for batch in batches)
    assert [doc for batch in batches for doc in batch] == docs


def test_iter_batches_rejects_non_positive_size():
    with pytest.raises(ValueError):
        list(indexer.iter_batches(_docs(3), 0))


def test_build_bulk_payload_pairs_action_and_document():
    docs = [{"id": 1, "name": "café"}, {"nested": {"a": [1, 2]}}]
    payload = indexer.build_bulk_payload("demo", docs)
    lines = payload.split("\n")

    assert payload.endswith("\n")
    assert len(lines) == 5
    assert lines[0] == '{"index":{"_index":"demo"}}'
    assert lines[2] == '{"index":{"_index":"demo"}}'
    assert "café" in lines[1]
    assert _payload_docs(payload) == docs


def test_upload_documents_batches_in_order(capsys):
    es = MagicMock()
    docs = _docs(2500)
    ticks = itertools.count()

    summary = indexer.upload_documents(es, "demo", docs, 1000, clock=lambda: float(next(ticks)))

    assert es.bulk.call_count == 3
    sent = [_payload_docs(c.args[0]) for c in es.bulk.call_args_list]
    assert [len(batch) for batch in sent] == [1000, 1000, 500]
    assert [doc for batch in sent for doc in batch] == docs
    assert summary.total == 2500
    assert summary.batches == 3
    assert summary.inserted == 2500

    err = capsys.readouterr().err
    assert "[info] Starting bulk insert total=2500" in err
    assert "inserted=1000 total=2500" in err
    assert "inserted=2500 total=2500" in err
    assert "[info] Bulk load completed total_time_s=" in err


def test_upload_documents_with_no_documents_sends_nothing():
    es = MagicMock()
    summary = indexer.upload_documents(es, "demo", [], 1000)
    es.bulk.assert_not_called()
    assert summary.batches == 0
    assert summary.inserted == 0


def test_upload_documents_aborts_on_first_failure(capsys):
    es = MagicMock()
    es.bulk.side_effect = [{}, ClusterError("bulk insert", "connection reset"), {}]

    with pytest.raises(ClusterError, match="connection reset"):
        indexer.upload_documents(es, "demo", _docs(25), 10)

    assert es.bulk.call_count == 2
    err = capsys.readouterr().err
    assert "inserted=10 total=25" in err
    assert "[error] Bulk insert aborted submitted=10 total=25 failed_batch=2" in err
    assert "Bulk load completed" not in err
