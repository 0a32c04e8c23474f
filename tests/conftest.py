import logging

import pytest
from fastapi.testclient import TestClient

from lostitem.config import Settings
from lostitem.main import create_app
from lostitem.models import CardMappingEntry


def make_entry(code: str) -> CardMappingEntry:
    return CardMappingEntry(
        code=code,
        name=f"Card {code}",
        status_hint=f"status {code}",
        location_hint=f"location {code}",
        area_hint=f"area {code}",
        action_hint=f"action {code}",
    )


@pytest.fixture
def entries():
    return tuple(make_entry(f"C{i}") for i in range(6))


@pytest.fixture
def settings(tmp_path):
    return Settings(mapping_source="embedded", storage_dir=tmp_path)


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings))


@pytest.fixture(autouse=True)
def restore_root_logger():
    # app lifespan reconfigures the root logger
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
