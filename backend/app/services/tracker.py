"""
Wires stores, manager, reconciler and surface adapters for the configured backend.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from backend.app.db.arango import db
from backend.app.models.policy import TrackingPolicy
from backend.app.services.documents import ArangoDocumentProvider, DocumentProvider, InMemoryDocumentProvider
from backend.app.services.notifications import StoreNotificationChannel
from backend.app.services.persistence import ArangoPersistenceSink, InMemoryPersistenceSink, PersistenceSink
from backend.app.services.reconciler import EventReconciler
from backend.app.services.session_manager import SessionManager
from backend.app.services.session_store import (
    ArangoKeyValueStore,
    Clock,
    InMemoryKeyValueStore,
    KeyValueStore,
    SessionStore,
)
from backend.app.services.surfaces import ClassicEditorAdapter, PageBuilderAdapter

logger = logging.getLogger(__name__)


@dataclass
class Tracker:
    policy: TrackingPolicy
    documents: DocumentProvider
    sink: PersistenceSink
    notifications: StoreNotificationChannel
    manager: SessionManager
    reconciler: EventReconciler
    classic: ClassicEditorAdapter
    builder: PageBuilderAdapter


def build_tracker(
    policy: TrackingPolicy,
    kv: KeyValueStore,
    documents: DocumentProvider,
    sink: PersistenceSink,
    clock: Optional[Clock] = None,
) -> Tracker:
    store = SessionStore(
        kv,
        session_ttl_seconds=policy.session_ttl_seconds,
        guard_ttl_seconds=policy.dedup_guard_window_seconds,
    )
    notifications = StoreNotificationChannel(kv, ttl_seconds=policy.notification_ttl_seconds)
    manager = SessionManager(
        store,
        documents,
        sink,
        notifications=notifications,
        policy=policy,
        clock=clock,
    )
    reconciler = EventReconciler(manager, policy)
    return Tracker(
        policy=policy,
        documents=documents,
        sink=sink,
        notifications=notifications,
        manager=manager,
        reconciler=reconciler,
        classic=ClassicEditorAdapter(reconciler),
        builder=PageBuilderAdapter(reconciler),
    )


def tracker_from_settings(settings) -> Tracker:
    policy = TrackingPolicy.from_settings(settings)
    backend = settings.STORE_BACKEND.lower()

    if backend == "arango":
        logger.info("Using ArangoDB stores")
        return build_tracker(
            policy,
            kv=ArangoKeyValueStore(db),
            documents=ArangoDocumentProvider(db),
            sink=ArangoPersistenceSink(db),
        )
    if backend != "memory":
        logger.warning("Unknown STORE_BACKEND=%r, falling back to memory", settings.STORE_BACKEND)

    return build_tracker(
        policy,
        kv=InMemoryKeyValueStore(),
        documents=InMemoryDocumentProvider(),
        sink=InMemoryPersistenceSink(),
    )
