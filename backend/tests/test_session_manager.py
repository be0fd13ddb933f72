import pytest
from unittest.mock import MagicMock
from backend.app.models.document import DocumentSnapshot
from backend.app.models.outcome import Disposition, DurationSource, ErrorKind
from backend.app.models.session import SessionSource, SessionUpdate
from backend.app.services.persistence import PersistenceError, SessionQuery
from backend.app.services.session_manager import SessionManager
from backend.tests.helpers import words

@pytest.fixture
def manager(tracker):
    return tracker.manager

def test_begin_snapshots_document(manager):
    session = manager.begin("7", "42")
    assert session is not None
    assert session.initial_word_count == 100
    assert session.document_type == "post"
    assert session.document_title == "Spring menu"
    assert session.initial_builder_hash is None
    assert session.source is SessionSource.STANDARD

def test_begin_within_reuse_window_is_idempotent(manager, clock):
    first = manager.begin("7", "42")
    clock.advance(120)
    second = manager.begin("7", "42")
    assert second.started_at == first.started_at

def test_begin_after_reuse_window_starts_over(manager, clock):
    first = manager.begin("7", "42")
    clock.advance(5 * 60)
    second = manager.begin("7", "42")
    assert second.started_at > first.started_at

def test_force_new_discards_open_session(manager, clock, sink):
    first = manager.begin("7", "42")
    clock.advance(30)
    second = manager.begin("7", "42", force_new=True)
    assert second.started_at > first.started_at
    assert sink.query(SessionQuery()) == []

def test_begin_for_unknown_document(manager):
    assert manager.begin("7", "404") is None
    assert manager.get_session("7", "404") is None

def test_begin_records_builder_fingerprint(manager):
    session = manager.begin("7", "77", source=SessionSource.BUILDER)
    assert session.initial_builder_hash is not None
    assert session.initial_builder_length > 0
    assert session.initial_word_count == 1

def test_update_without_session_recovers(manager, clock):
    session = manager.update("7", "42", SessionUpdate(activity_delta=2))
    assert session.source is SessionSource.RECOVERY
    assert session.started_at == clock()
    assert session.activity_count == 2

def test_update_merges_fields(manager, clock):
    manager.begin("7", "42")
    manager.update("7", "42", SessionUpdate(activity_delta=2, modified_element_ids=["a", "b"]))
    clock.advance(5)
    session = manager.update("7", "42", SessionUpdate(activity_delta=3, modified_element_ids=["b", "c"], client_timer_seconds=12))
    assert session.activity_count == 5
    assert session.modified_element_ids == ["a", "b", "c"]
    assert session.client_timer_seconds == 12
    assert session.last_activity_at == clock()

def test_zero_client_timer_keeps_previous_value(manager):
    manager.begin("7", "42")
    manager.update("7", "42", SessionUpdate(client_timer_seconds=30))
    session = manager.update("7", "42", SessionUpdate(client_timer_seconds=0))
    assert session.client_timer_seconds == 30

def test_builder_hash_back_to_initial_clears_changes(manager):
    initial = manager.begin("7", "77").initial_builder_hash
    assert manager.update("7", "77", SessionUpdate(builder_hash="deadbeef")).has_builder_changes
    assert not manager.update("7", "77", SessionUpdate(builder_hash=initial)).has_builder_changes

def test_client_timer_takes_precedence(manager, clock):
    manager.begin("7", "42")
    manager.update("7", "42", SessionUpdate(client_timer_seconds=42))
    clock.advance(10)
    result = manager.end("7", "42")
    assert result.outcome.duration == 42
    assert result.outcome.duration_source is DurationSource.CLIENT_TIMER
    assert result.disposition is Disposition.DURATION_ONLY

def test_wall_clock_used_without_client_timer(manager, clock):
    manager.begin("7", "42")
    clock.advance(15)
    result = manager.end("7", "42")
    assert result.outcome.duration == 15
    assert result.outcome.duration_source is DurationSource.WALL_CLOCK

def test_short_unchanged_session_is_skipped(manager, clock, sink):
    manager.begin("7", "42")
    clock.advance(4)
    result = manager.end("7", "42")
    assert result.disposition is Disposition.SKIP
    assert not result.persisted
    assert result.error is None
    assert sink.query(SessionQuery()) == []
    assert manager.get_session("7", "42") is None

def test_edit_session_is_recorded_in_full(manager, documents, clock, sink):
    manager.begin("7", "42")
    manager.update("7", "42", SessionUpdate(activity_delta=1))
    documents.put(DocumentSnapshot(document_id="42", title="Spring menu", raw_content=words(105)))
    clock.advance(20)
    result = manager.end("7", "42")

    assert result.disposition is Disposition.FULL
    assert result.persisted
    outcome = result.outcome
    assert outcome.duration == 20
    assert outcome.word_delta == 5
    assert outcome.char_delta == 25
    assert outcome.activity_count == 1
    assert outcome.activity_summary == "Edited post: Spring menu, tracked changes: 1"

    stored = sink.query(SessionQuery(user_id="7"))
    assert len(stored) == 1
    assert stored[0].id == result.record_id
    assert manager.get_session("7", "42") is None

def test_short_edit_is_changes_only(manager, documents, clock):
    manager.begin("7", "42")
    documents.put(DocumentSnapshot(document_id="42", raw_content=words(99)))
    clock.advance(3)
    assert manager.end("7", "42").disposition is Disposition.CHANGES_ONLY

def test_activity_summary_for_builder_session(manager):
    manager.begin("7", "77", source=SessionSource.BUILDER)
    manager.update("7", "77", SessionUpdate(
        builder_hash="changed", builder_length=300, activity_delta=4, modified_element_ids=["x", "y"],
    ))
    result = manager.end("7", "77")
    assert result.outcome.activity_summary.startswith("Builder edit page: Landing, builder data: +")
    assert result.outcome.activity_summary.endswith(", tracked changes: 4, elements modified: 2")
    assert result.outcome.modified_element_count == 2

def test_persistence_failure_surfaces_as_error(tracker, clock):
    failing_sink = MagicMock()
    failing_sink.insert.side_effect = PersistenceError("disk full")
    manager = SessionManager(
        tracker.manager.store,
        tracker.documents,
        failing_sink,
        notifications=tracker.notifications,
        clock=clock,
    )
    manager.begin("7", "42")
    clock.advance(30)
    result = manager.end("7", "42")

    assert result.disposition is Disposition.ERROR
    assert result.error is ErrorKind.PERSISTENCE_FAILURE
    assert not result.persisted
    assert manager.get_session("7", "42") is None
    assert tracker.notifications.consume("7").status == "error_db"

def test_end_without_session(manager, tracker):
    result = manager.end("7", "42")
    assert result.error is ErrorKind.NO_SESSION
    notice = tracker.notifications.consume("7")
    assert notice.status == "no_session"
    assert notice.document_title == "Spring menu"

def test_end_publishes_status(manager, tracker, clock):
    manager.begin("7", "42")
    clock.advance(75)
    manager.end("7", "42")
    notice = tracker.notifications.consume("7")
    assert notice.status == "tracked_duration_only"
    assert notice.duration_label == "1m 15s"
    assert tracker.notifications.consume("7") is None

def test_store_write_failure_is_not_tracked(tracker, documents, sink):
    store = MagicMock()
    store.load.return_value = None
    store.save.return_value = False
    manager = SessionManager(store, documents, sink)
    assert manager.begin("7", "42") is None

def test_vanished_document_counts_as_unchanged(manager, documents, clock):
    manager.begin("7", "42")
    documents._items.pop("42")
    clock.advance(12)
    result = manager.end("7", "42")
    assert result.outcome.char_delta == 0
    assert result.outcome.word_delta == 0
    assert result.disposition is Disposition.DURATION_ONLY

def test_skip_makes_no_sink_calls(tracker, clock):
    sink = MagicMock()
    manager = SessionManager(tracker.manager.store, tracker.documents, sink, clock=clock)
    manager.begin("7", "42")
    clock.advance(3)
    assert manager.end("7", "42").disposition is Disposition.SKIP
    sink.insert.assert_not_called()
    assert manager.get_session("7", "42") is None
