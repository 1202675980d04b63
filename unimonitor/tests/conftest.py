import os

import pytest
from fastapi.testclient import TestClient

from unimonitor.app import create_app
from unimonitor.core.records import InMemoryRecordStore
from unimonitor.core.settings import PROJECT_ROOT
from unimonitor.programs.loaders import load_grants, load_records

DATA_DIR = os.path.join(PROJECT_ROOT, "data")


@pytest.fixture()
def grants_json():
    return load_grants(DATA_DIR)


@pytest.fixture()
def store():
    return InMemoryRecordStore.from_json(load_records(DATA_DIR))


@pytest.fixture()
def client(grants_json, store):
    with TestClient(create_app(grants_json, store)) as c:
        yield c
