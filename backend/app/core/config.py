from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Editing Time Tracker"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # "memory" keeps everything in-process (dev/tests), "arango" uses the collections below
    STORE_BACKEND: str = "memory"

    # ArangoDB
    ARANGO_HOST: str = "http://localhost:8529"
    ARANGO_USERNAME: str = "root"
    ARANGO_PASSWORD: str = "test"
    ARANGO_DB_NAME: str = "editing_time_tracker"

    # Tracking policy
    INACTIVITY_TIMEOUT_SECONDS: int = 60  # reserved for idle cutoff, not enforced yet
    MIN_DURATION_THRESHOLD_SECONDS: int = 10
    MIN_CHAR_CHANGE_THRESHOLD: int = 3
    SESSION_REUSE_WINDOW_MINUTES: int = 5
    DEDUP_GUARD_WINDOW_SECONDS: int = 60
    SESSION_TTL_HOURS: int = 12
    NOTIFICATION_TTL_SECONDS: int = 30
    TRACKED_DOCUMENT_TYPES: List[str] = ["post", "page"]
    MAX_TEMPLATE_DEPTH: int = 5
    MIN_PING_SAVE_SECONDS: int = 3


    class Config:
        env_file = ".env"

settings = Settings()
