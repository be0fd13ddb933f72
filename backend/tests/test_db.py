import pytest
from unittest.mock import MagicMock, patch
from arango.exceptions import ArangoClientError
from backend.app.core.config import settings
from backend.app.db.arango import ArangoDB

@pytest.fixture
def client_cls():
    with patch("backend.app.db.arango.ArangoClient") as client_cls:
        yield client_cls

def databases(client_cls):
    sys_db, database = MagicMock(), MagicMock()
    sys_db.has_database.return_value = False
    database.has_collection.return_value = False
    client_cls.return_value.db.side_effect = [sys_db, database]
    return sys_db, database

def test_initialize_creates_database_and_collections(client_cls):
    sys_db, database = databases(client_cls)

    result = ArangoDB().initialize()

    assert result is database
    sys_db.create_database.assert_called_once_with(settings.ARANGO_DB_NAME)
    created = [c.args[0] for c in database.create_collection.call_args_list]
    assert created == ["EditingSessions", "LiveSessions", "Documents"]

def test_live_sessions_have_ttl_index(client_cls):
    _, database = databases(client_cls)
    ArangoDB().initialize()
    database.collection.return_value.add_ttl_index.assert_called_once_with(fields=["expires_at"], expiry_time=0)

def test_connection_failure_leaves_db_unset(client_cls):
    client_cls.return_value.db.side_effect = ArangoClientError("connection refused")
    arango = ArangoDB()
    assert arango.initialize() is None
    assert arango.get_db() is None
