import pytest

from esbatch.core.config import JobConfig, LoadConfig
from esbatch.core.errors import DecodeError
from esbatch.core.job_runner import JobRunner
from esbatch.core.operations import OpType, WriteOperation
from esbatch.core.serde import LineFormat, encode_line
from esbatch.extractors.bulk_file.extractor import BulkFileExtractor
from esbatch.transformers.bulk_actions import BulkActionMapper
from fakes import FakeLoader, write_lines


def _runner(metrics, chunk=10, prefetch=1):
    cfg = JobConfig(load=LoadConfig(chunk=chunk))
    cfg.threading.prefetch_batches = prefetch
    return JobRunner(cfg, metrics=metrics)


def test_bulk_file(tmp_path, metrics, bulk_file_data):
    location = write_lines(tmp_path / "bulk.ndjson", bulk_file_data)
    loader = FakeLoader()

    output = _runner(metrics).bulk_load(location, loader)

    assert output.size == 5
    assert metrics.value("requests.count") == 1
    assert metrics.value("records") == 5
    assert [op.op_type for op in loader.operations] == [
        OpType.INDEX,
        OpType.DELETE,
        OpType.CREATE,
        OpType.UPDATE,
        OpType.CREATE,
    ]
    assert loader.operations[0] == WriteOperation.index_doc({"field1": "value1"}, index="ut_bulk", id="1")
    assert loader.operations[3] == WriteOperation.update_doc("1", {"field2": "value2"}, index="ut_bulk")
    assert loader.operations[4].id is None
    assert loader.connected and loader.closed


def test_bulk_file_ion(tmp_path, metrics, bulk_file_data):
    path = tmp_path / "bulk.ion"
    path.write_text("".join(encode_line(v, LineFormat.ION) + "\n" for v in bulk_file_data), encoding="utf-8")
    loader = FakeLoader()

    output = _runner(metrics, prefetch=0).bulk_load(str(path), loader)

    assert output.size == 5
    assert metrics.value("requests.count") == 1
    assert metrics.value("records") == 5
    assert loader.operations[2].document == {"field1": "value3"}


def test_bulk_file_from_uri_with_blank_lines(tmp_path, metrics):
    path = tmp_path / "bulk.ndjson"
    path.write_text(
        '{"index": {"_index": "a", "_id": "1"}}\n\n{"x": 1}\n\n{"delete": {"_index": "a", "_id": "2"}}\n\n',
        encoding="utf-8",
    )
    loader = FakeLoader()

    output = _runner(metrics).bulk_load(path.as_uri(), loader)

    assert output.size == 2
    assert loader.operations[1] == WriteOperation.delete_doc("2", index="a")


def test_invalid_action_fails_before_any_request(tmp_path, metrics):
    location = write_lines(
        tmp_path / "bulk.ndjson",
        [
            {"index": {"_index": "a", "_id": "1"}},
            {"x": 1},
            {"foo": {"_index": "a", "_id": "2"}},
            {"x": 2},
        ],
    )
    loader = FakeLoader()

    with pytest.raises(DecodeError) as exc:
        _runner(metrics).bulk_load(location, loader)

    assert 'Invalid bulk request type' in str(exc.value)
    assert '{"foo": {"_index": "a", "_id": "2"}}' in str(exc.value)
    assert exc.value.position == 3
    assert loader.batches == []
    assert loader.closed
    assert metrics.value("requests.count") == 0


def test_missing_document_line(tmp_path):
    location = write_lines(tmp_path / "bulk.ndjson", [{"create": {"_index": "a"}}])
    extractor = BulkFileExtractor(location)

    with extractor:
        with pytest.raises(DecodeError, match="Missing document line"):
            list(extractor.iter_records())


def test_update_with_plain_document_line_is_an_upsert(tmp_path):
    location = write_lines(
        tmp_path / "bulk.ndjson",
        [
            {"update": {"_index": "a", "_id": "1"}},
            {"field": "value"},
            {"update": {"_index": "a", "_id": "2"}},
            {"doc": {"field": "value"}, "doc_as_upsert": False},
        ],
    )
    extractor = BulkFileExtractor(location)

    with extractor:
        ops = list(BulkActionMapper().map_stream(extractor.iter_records()))

    assert ops[0] == WriteOperation.update_doc("1", {"field": "value"}, index="a", upsert=True)
    assert ops[1] == WriteOperation.update_doc("2", {"field": "value"}, index="a", upsert=False)


def test_update_mixing_doc_with_other_keys_is_a_decode_error(tmp_path):
    location = write_lines(
        tmp_path / "bulk.ndjson",
        [{"update": {"_index": "a", "_id": "1"}}, {"doc": {"x": 1}, "title": "kept?"}],
    )
    extractor = BulkFileExtractor(location)

    with extractor:
        with pytest.raises(DecodeError, match="unsupported keys") as exc:
            list(BulkActionMapper().map_stream(extractor.iter_records()))

    assert exc.value.position == 2
    assert exc.value.raw == '{"doc": {"x": 1}, "title": "kept?"}'


def test_update_without_id_is_a_decode_error(tmp_path):
    location = write_lines(tmp_path / "bulk.ndjson", [{"update": {"_index": "a"}}, {"doc": {"x": 1}}])
    extractor = BulkFileExtractor(location)

    with extractor:
        with pytest.raises(DecodeError, match="requires an id"):
            list(BulkActionMapper().map_stream(extractor.iter_records()))


def test_file_is_closed_after_run(tmp_path, metrics, bulk_file_data):
    location = write_lines(tmp_path / "bulk.ndjson", bulk_file_data)
    extractor = BulkFileExtractor(location)

    JobRunner(metrics=metrics).run_extract_to_loader(extractor, BulkActionMapper(), FakeLoader())

    assert extractor._stream is None
