from functools import lru_cache
from backend.app.core.config import settings
from backend.app.services.tracker import Tracker, tracker_from_settings

@lru_cache
def get_tracker() -> Tracker:
    return tracker_from_settings(settings)
