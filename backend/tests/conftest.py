import pytest
from datetime import datetime, timedelta, timezone
from backend.app.models.document import DocumentSnapshot
from backend.app.models.policy import TrackingPolicy
from backend.app.services.documents import InMemoryDocumentProvider
from backend.app.services.persistence import InMemoryPersistenceSink
from backend.app.services.session_store import InMemoryKeyValueStore
from backend.app.services.tracker import build_tracker
from backend.tests.helpers import words


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def kv(clock):
    return InMemoryKeyValueStore(clock)


@pytest.fixture
def documents():
    provider = InMemoryDocumentProvider()
    provider.put(DocumentSnapshot(document_id="42", document_type="post", title="Spring menu", raw_content=words(100)))
    provider.put(DocumentSnapshot(
        document_id="77",
        document_type="page",
        title="Landing",
        raw_content="",
        builder_data=[{"id": "s1", "elType": "section", "settings": {"heading": "Welcome"}, "elements": []}],
    ))
    provider.put(DocumentSnapshot(document_id="900", document_type="nav_menu_item", title="Menu"))
    return provider


@pytest.fixture
def sink():
    return InMemoryPersistenceSink()


@pytest.fixture
def policy():
    return TrackingPolicy()


@pytest.fixture
def tracker(policy, kv, documents, sink, clock):
    return build_tracker(policy, kv, documents, sink, clock=clock)
