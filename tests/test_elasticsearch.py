import pytest
from elasticsearch import ConnectionError as ElasticsearchConnectionError

from esbatch.core.config import JobConfig, LoadConfig, ScrollConfig
from esbatch.core.errors import BulkItemsError, TransportError
from esbatch.core.job_runner import JobRunner
from esbatch.core.operations import WriteOperation
from esbatch.core.search_base import ScrollCursor, SearchRequest
from esbatch.extractors.elasticsearch.extractor import ElasticsearchSearchClient
from esbatch.loaders.elasticsearch.loader import ElasticsearchLoader
from esbatch.storage.locations import resolve_path
from fakes import FakeElasticsearch, write_lines


def test_loader_sends_one_bulk_request_per_batch():
    es = FakeElasticsearch()
    loader = ElasticsearchLoader(client=es, index="default_index", routing="r1")
    loader.connect()

    result = loader.submit_batch(
        [
            WriteOperation.index_doc({"a": 1}, id="1"),
            WriteOperation.delete_doc("2", index="other"),
            WriteOperation.update_doc("3", {"b": 2}),
        ]
    )

    assert len(es.bulk_calls) == 1
    call = es.bulk_calls[0]
    assert call["index"] == "default_index"
    assert call["routing"] == "r1"
    assert call["operations"] == [
        {"index": {"_id": "1"}},
        {"a": 1},
        {"delete": {"_index": "other", "_id": "2"}},
        {"update": {"_id": "3"}},
        {"doc": {"b": 2}, "doc_as_upsert": True},
    ]
    assert result.took == 7
    assert not result.errors
    assert [item.op_type for item in result.items] == ["index", "delete", "update"]
    assert result.items[0].index == "default_index"


def test_loader_reports_item_failures():
    es = FakeElasticsearch()
    es.failures["2"] = {"status": 409, "reason": "version conflict, document already exists"}
    loader = ElasticsearchLoader(client=es)
    loader.connect()

    result = loader.submit_batch(
        [WriteOperation.create_doc({"a": 1}, index="i", id="1"), WriteOperation.create_doc({"a": 2}, index="i", id="2")]
    )

    assert result.errors
    assert len(result.failed_items) == 1
    failed = result.failed_items[0]
    assert (failed.index, failed.id, failed.status) == ("i", "2", 409)
    assert failed.reason == "version conflict, document already exists"


def test_loader_wraps_transport_errors():
    class DownElasticsearch(FakeElasticsearch):
        def bulk(self, operations, **params):
            raise ElasticsearchConnectionError("Connection refused")

    loader = ElasticsearchLoader(client=DownElasticsearch())
    loader.connect()

    with pytest.raises(TransportError) as exc:
        loader.submit_batch([WriteOperation.index_doc({"a": 1}, index="i")])

    assert isinstance(exc.value.__cause__, ElasticsearchConnectionError)


def test_loader_leaves_a_borrowed_client_open():
    es = FakeElasticsearch()
    loader = ElasticsearchLoader(client=es)

    loader.connect()
    loader.close()

    assert not es.closed
    assert loader.client is es


def test_loader_needs_a_client_or_connection():
    with pytest.raises(ValueError):
        ElasticsearchLoader()


def test_bulk_load_end_to_end_with_partial_failure(tmp_path, metrics):
    rows = [{"id": i, "name": "john"} for i in range(30)]
    location = write_lines(tmp_path / "rows.json", rows)
    es = FakeElasticsearch()
    es.failures["14"] = {"status": 400, "reason": "failed to parse field [name]"}
    cfg = JobConfig(load=LoadConfig(chunk=10, index="people", id_key="id"))

    with pytest.raises(BulkItemsError) as exc:
        JobRunner(cfg, metrics=metrics).load(location, ElasticsearchLoader(client=es, index="people"))

    assert "people: 400 - failed to parse field [name]" in str(exc.value)
    assert len(es.bulk_calls) == 2
    assert metrics.value("requests.count") == 2
    assert metrics.value("records") == 20


def test_search_client_scroll_calls():
    es = FakeElasticsearch(hits=[{"n": i} for i in range(3)], page_size=2)
    client = ElasticsearchSearchClient(client=es)
    request = SearchRequest.build('{"query": {"term": {"key": "925277090"}}}', ["gbif"], routing="r")

    with client:
        page, cursor = client.search(request, keep_alive="60s")
        next_page, next_cursor = client.next_page(cursor)
        client.release_cursor(next_cursor)

    assert es.search_calls == [
        {"body": {"query": {"term": {"key": "925277090"}}}, "index": ["gbif"], "routing": "r", "scroll": "60s"}
    ]
    assert page.hits == [{"n": 0}, {"n": 1}]
    assert page.total == 3
    assert page.took == 4
    assert cursor == ScrollCursor("sid-2", "60s")
    assert es.scroll_calls == [{"scroll_id": "sid-2", "scroll": "60s"}]
    assert next_page.hits == [{"n": 2}]
    assert next_cursor.scroll_id == "sid-4"
    assert es.cleared == ["sid-4"]


def test_search_without_keep_alive_opens_no_cursor():
    es = FakeElasticsearch(hits=[{"n": 1}])
    client = ElasticsearchSearchClient(client=es)

    with client:
        page, cursor = client.search(SearchRequest.build({"query": {"match_all": {}}}))

    assert cursor is None
    assert "scroll" not in es.search_calls[0]
    assert "index" not in es.search_calls[0]
    assert page.hits == [{"n": 1}]


def test_scroll_export_end_to_end(tmp_path, metrics):
    es = FakeElasticsearch(hits=[{"n": i} for i in range(5)], page_size=2)
    cfg = JobConfig(scroll=ScrollConfig(indexes=["gbif"]))

    output = JobRunner(cfg, metrics=metrics).scroll_export(
        ElasticsearchSearchClient(client=es), str(tmp_path / "hits.ion")
    )

    assert output.size == 5
    assert len(resolve_path(output.uri).read_text(encoding="utf-8").splitlines()) == 5
    assert [c["scroll_id"] for c in es.scroll_calls] == ["sid-2", "sid-4", "sid-6"]
    assert es.cleared == ["sid-8"]
    assert metrics.value("requests.count") == 3
