"""
Event Reconciler
Single entry point for every editing surface. Normalizes identity, filters
untracked document types and makes close idempotent across redundant channels.

A single save can reach us as a synchronous save callback, an async request and
a heartbeat that happens to coincide. The first close that persists writes a
short-lived guard key; closes arriving inside the guard window are dropped.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from backend.app.models.document import DocumentSnapshot
from backend.app.models.intents import CloseSession, StartSession, UpdateSession
from backend.app.models.outcome import CloseResult, ErrorKind, IntentResult
from backend.app.models.policy import TrackingPolicy
from backend.app.models.session import EditingSession
from backend.app.services.session_manager import SessionManager

logger = logging.getLogger(__name__)


class EventReconciler:
    def __init__(self, manager: SessionManager, policy: Optional[TrackingPolicy] = None):
        self.manager = manager
        self.policy = policy or manager.policy

    @property
    def store(self):
        return self.manager.store

    @property
    def documents(self):
        return self.manager.documents

    def has_session(self, user_id: str, document_id: str) -> bool:
        return self.manager.get_session(user_id, document_id) is not None

    def _admit(self, intent, kind: str) -> Tuple[Optional[DocumentSnapshot], Optional[ErrorKind]]:
        """Resolves the document and applies the identity and document type gates."""
        if not intent.has_identity:
            logger.warning(
                "Dropping %s intent without identity (user=%r, document=%r)",
                kind, intent.user_id, intent.document_id,
            )
            return None, ErrorKind.MISSING_IDENTITY

        document = self.documents.get_document(intent.document_id)
        if document is None:
            logger.warning("Dropping %s intent for unknown document %s", kind, intent.document_id)
            return None, ErrorKind.NO_DOCUMENT

        if document.document_type not in self.policy.tracked_document_types:
            logger.debug(
                "Ignoring %s intent for %s: type %r is not tracked",
                kind, intent.document_id, document.document_type,
            )
            return None, ErrorKind.UNTRACKED_DOCUMENT

        return document, None

    @staticmethod
    def _session_result(session: Optional[EditingSession]) -> IntentResult:
        if session is None:
            return IntentResult(accepted=False, error=ErrorKind.STORE_UNAVAILABLE)
        return IntentResult(
            accepted=True,
            started_at=session.started_at,
            activity_count=session.activity_count,
            has_builder_changes=session.has_builder_changes,
        )

    def start(self, intent: StartSession) -> IntentResult:
        document, error = self._admit(intent, "start")
        if error:
            return IntentResult(accepted=False, error=error)

        session = self.manager.begin(
            intent.user_id,
            intent.document_id,
            force_new=intent.force_new,
            source=intent.source,
            document=document,
        )
        return self._session_result(session)

    def update(self, intent: UpdateSession) -> IntentResult:
        # Updates merge field by field; a repeated update rewrites the same values
        document, error = self._admit(intent, "update")
        if error:
            return IntentResult(accepted=False, error=error)

        session = self.manager.update(intent.user_id, intent.document_id, intent.delta, document=document)
        return self._session_result(session)

    def close(self, intent: CloseSession) -> CloseResult:
        document, error = self._admit(intent, "close")
        if error:
            return CloseResult(error=error)

        if intent.builder_data is not None:
            document = document.model_copy(update={"builder_data": intent.builder_data})

        user_id, document_id = intent.user_id, intent.document_id
        now = self.manager.clock()

        last_recorded = self.store.get_guard(user_id, document_id)
        if last_recorded is not None:
            age = (now - last_recorded).total_seconds()
            if age < self.policy.dedup_guard_window_seconds:
                logger.debug(
                    "Suppressing duplicate close for %s_%s, recorded %.0fs ago",
                    user_id, document_id, age,
                )
                return CloseResult(error=ErrorKind.DUPLICATE_CLOSE)

        if intent.delta is not None and not intent.delta.is_empty():
            self.manager.update(user_id, document_id, intent.delta, document=document)

        result = self.manager.end(user_id, document_id, document=document)

        if result.persisted:
            self.store.set_guard(user_id, document_id, now)
        return result
