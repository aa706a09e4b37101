import pytest

from core.record_store import MemoryStore, WellnessRecords


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def records(store):
    return WellnessRecords(store)
