import logging
from arango import ArangoClient
from arango.exceptions import ArangoError
from backend.app.core.config import settings

logger = logging.getLogger(__name__)

# Finalized editing sessions (reporting reads these)
OUTCOMES_COLLECTION = "EditingSessions"
# Ephemeral keys: in-flight sessions, dedup guards, tracking status notices
LIVE_COLLECTION = "LiveSessions"
# Host document snapshots and builder templates
DOCUMENTS_COLLECTION = "Documents"

class ArangoDB:
    def __init__(self):
        self.client = None
        self.db = None

    def initialize(self):
        try:
            self.client = ArangoClient(hosts=settings.ARANGO_HOST)
            sys_db = self.client.db('_system', username=settings.ARANGO_USERNAME, password=settings.ARANGO_PASSWORD)
            if not sys_db.has_database(settings.ARANGO_DB_NAME):
                sys_db.create_database(settings.ARANGO_DB_NAME)

            database = self.client.db(settings.ARANGO_DB_NAME, username=settings.ARANGO_USERNAME, password=settings.ARANGO_PASSWORD)

            for col in [OUTCOMES_COLLECTION, LIVE_COLLECTION, DOCUMENTS_COLLECTION]:
                if not database.has_collection(col):
                    database.create_collection(col)

            # Reporting filters
            outcomes = database.collection(OUTCOMES_COLLECTION)
            outcomes.add_persistent_index(fields=["user_id", "start_ts"])
            outcomes.add_persistent_index(fields=["document_id", "start_ts"])

            # Arango removes expired keys in the background; readers still check expires_at
            live = database.collection(LIVE_COLLECTION)
            live.add_ttl_index(fields=["expires_at"], expiry_time=0)

            self.db = database
            logger.info("Connected to ArangoDB: %s", settings.ARANGO_DB_NAME)
            return self.db
        except (ArangoError, OSError) as e:
            # Callers see get_db() -> None and report the store as unavailable
            logger.error("Failed to connect to ArangoDB: %s", e)
            self.db = None
            return None

    def get_db(self):
        if not self.db:
            self.initialize()
        return self.db

db = ArangoDB()
