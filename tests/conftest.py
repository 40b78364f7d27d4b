"""
Shared fixtures. Nothing here talks to a real cluster; see fakes.py for the stand-ins.
"""
from __future__ import annotations

from typing import Any, Dict, List

import pytest

from esbatch.core.metrics import InMemoryMetrics


@pytest.fixture
def metrics() -> InMemoryMetrics:
    return InMemoryMetrics()


@pytest.fixture
def bulk_file_data() -> List[Dict[str, Any]]:
    indice = "ut_bulk"
    return [
        {"index": {"_index": indice, "_id": "1"}},
        {"field1": "value1"},
        {"delete": {"_index": indice, "_id": "1"}},
        {"create": {"_index": indice, "_id": "3"}},
        {"field1": "value3"},
        {"update": {"_index": indice, "_id": "1"}},
        {"doc": {"field2": "value2"}},
        {"create": {"_index": indice}},
        {"field1": "value4"},
    ]
