"""
Session Manager
Owns the editing session lifecycle: open or reuse, merge activity, close into an Outcome.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from backend.app.core.formatting import format_duration
from backend.app.models.document import DocumentSnapshot
from backend.app.models.outcome import (
    CloseResult,
    Disposition,
    DurationSource,
    ErrorKind,
    Outcome,
    TrackingStatus,
)
from backend.app.models.policy import TrackingPolicy
from backend.app.models.session import EditingSession, SessionSource, SessionUpdate
from backend.app.services.classifier import classify, has_significant_change
from backend.app.services.content_extractor import ContentExtractor, builder_fingerprint
from backend.app.services.documents import DocumentProvider
from backend.app.services.notifications import NotificationChannel
from backend.app.services.persistence import PersistenceError, PersistenceSink
from backend.app.services.session_store import Clock, SessionStore, utcnow

logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(
        self,
        store: SessionStore,
        documents: DocumentProvider,
        sink: PersistenceSink,
        extractor: Optional[ContentExtractor] = None,
        notifications: Optional[NotificationChannel] = None,
        policy: Optional[TrackingPolicy] = None,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.documents = documents
        self.sink = sink
        self.policy = policy or TrackingPolicy()
        self.extractor = extractor or ContentExtractor(
            template_loader=documents.get_builder_tree,
            max_template_depth=self.policy.max_template_depth,
        )
        self.notifications = notifications
        self.clock = clock or utcnow

    def get_session(self, user_id: str, document_id: str) -> Optional[EditingSession]:
        return self.store.load(user_id, document_id)

    def begin(
        self,
        user_id: str,
        document_id: str,
        force_new: bool = False,
        source: SessionSource = SessionSource.STANDARD,
        document: Optional[DocumentSnapshot] = None,
    ) -> Optional[EditingSession]:
        """
        Opens a session, or keeps the current one if it is younger than the reuse window.
        Re-entering the editor (tab switches, reloads) must not split one episode.
        Returns None when the session could not be tracked.
        """
        now = self.clock()
        existing = self.store.load(user_id, document_id)

        if existing is not None and not force_new:
            age = existing.age_seconds(now)
            if age < self.policy.reuse_window_seconds:
                logger.debug(
                    "Reusing session %s (%.0fs old), extending its TTL", existing.key, age
                )
                self.store.save(existing)
                return existing

        if existing is not None:
            # Superseded, not closed: the old interval is dropped without a record
            logger.info(
                "Discarding session %s started at %s (force_new=%s)",
                existing.key, existing.started_at.isoformat(), force_new,
            )
            self.store.delete(user_id, document_id)

        if document is None:
            document = self.documents.get_document(document_id)
        if document is None:
            logger.warning("Could not retrieve document %s for session start", document_id)
            return None

        metrics = self.extractor.extract(document.raw_content, document.builder_data)
        builder_hash, builder_length = builder_fingerprint(document.builder_data)

        session = EditingSession(
            user_id=user_id,
            document_id=document_id,
            started_at=now,
            source=source,
            document_type=document.document_type,
            document_title=document.title,
            initial_length=metrics.length,
            initial_stripped_length=metrics.stripped_length,
            initial_word_count=metrics.word_count,
            initial_builder_hash=builder_hash,
            initial_builder_length=builder_length,
            last_activity_at=now,
        )
        if not self.store.save(session):
            logger.warning("Session %s not tracked: store write failed", session.key)
            return None

        logger.info(
            "Started %s session %s (%d words, builder=%s)",
            source.value, session.key, metrics.word_count, builder_hash is not None,
        )
        return session

    def update(
        self,
        user_id: str,
        document_id: str,
        delta: SessionUpdate,
        document: Optional[DocumentSnapshot] = None,
    ) -> Optional[EditingSession]:
        session = self.store.load(user_id, document_id)
        if session is None:
            logger.info("Update for %s_%s with no open session, starting one", user_id, document_id)
            session = self.begin(user_id, document_id, source=SessionSource.RECOVERY, document=document)
            if session is None:
                return None

        updated = session.apply(delta, self.clock())
        if not self.store.save(updated):
            logger.warning("Session %s update lost: store write failed", updated.key)
            return None

        if updated.client_timer_seconds:
            logger.debug(
                "Session %s timer at %s", updated.key, format_duration(updated.client_timer_seconds)
            )
        return updated

    def end(
        self,
        user_id: str,
        document_id: str,
        document: Optional[DocumentSnapshot] = None,
    ) -> CloseResult:
        session = self.store.load(user_id, document_id)
        if document is None:
            document = self.documents.get_document(document_id)

        if session is None:
            logger.info("Close for %s_%s with no open session", user_id, document_id)
            self._notify(user_id, TrackingStatus(
                status=ErrorKind.NO_SESSION.value,
                document_id=document_id,
                document_title=document.title if document else "",
            ))
            return CloseResult(error=ErrorKind.NO_SESSION)

        end_time = self.clock()
        duration, duration_source = self._duration(session, end_time)

        if document is not None:
            final = self.extractor.extract(document.raw_content, document.builder_data)
            char_delta = final.stripped_length - session.initial_stripped_length
            word_delta = final.word_count - session.initial_word_count
        else:
            logger.warning("Document %s vanished before close, content treated as unchanged", document_id)
            char_delta = word_delta = 0

        significant = has_significant_change(
            char_delta,
            word_delta,
            session.has_builder_changes,
            session.activity_count,
            self.policy.min_char_change_threshold,
        )
        disposition = classify(duration, significant, self.policy.min_duration_threshold_seconds)

        if disposition is Disposition.SKIP:
            logger.info(
                "Skipping session %s: no significant changes and %ds < %ds",
                session.key, duration, self.policy.min_duration_threshold_seconds,
            )
            self.store.delete(user_id, document_id)
            self._notify(user_id, self._status(session, disposition, duration))
            return CloseResult(disposition=disposition)

        outcome = Outcome(
            user_id=user_id,
            document_id=document_id,
            document_type=session.document_type,
            document_title=session.document_title,
            start_time=session.started_at,
            end_time=end_time,
            duration=duration,
            duration_source=duration_source,
            char_delta=char_delta,
            word_delta=word_delta,
            builder_length_delta=self._builder_length_delta(session),
            activity_count=session.activity_count,
            modified_element_count=len(session.modified_element_ids),
            activity_summary=self._activity_summary(session),
            disposition=disposition,
        )

        try:
            record_id = self.sink.insert(outcome)
            result = CloseResult(
                disposition=disposition,
                outcome=outcome.model_copy(update={"id": record_id}),
                record_id=record_id,
            )
            logger.info(
                "Recorded session %s as %s (%s from %s, %+d chars, %+d words)",
                session.key, disposition.value, format_duration(duration), duration_source.value, char_delta, word_delta,
            )
        except PersistenceError as e:
            logger.error("Failed to record session %s: %s", session.key, e)
            outcome = outcome.model_copy(update={"disposition": Disposition.ERROR})
            result = CloseResult(
                disposition=Disposition.ERROR,
                outcome=outcome,
                error=ErrorKind.PERSISTENCE_FAILURE,
            )
        finally:
            # Persisted or not, the episode is over: at most one record per session
            self.store.delete(user_id, document_id)

        self._notify(user_id, self._status(session, result.disposition, duration))
        return result

    def _duration(self, session: EditingSession, end_time: datetime):
        if session.client_timer_seconds and session.client_timer_seconds > 0:
            return session.client_timer_seconds, DurationSource.CLIENT_TIMER
        wall_clock = int((end_time - session.started_at).total_seconds())
        return max(0, wall_clock), DurationSource.WALL_CLOCK

    @staticmethod
    def _builder_length_delta(session: EditingSession) -> int:
        if session.final_builder_length is None:
            return 0
        return session.final_builder_length - session.initial_builder_length

    def _activity_summary(self, session: EditingSession) -> str:
        is_builder = session.initial_builder_hash is not None or session.source is SessionSource.BUILDER
        summary = "%s %s: %s" % (
            "Builder edit" if is_builder else "Edited",
            session.document_type,
            session.document_title,
        )
        if session.has_builder_changes:
            summary += ", builder data: %+d bytes" % self._builder_length_delta(session)
        if session.activity_count > 0:
            summary += ", tracked changes: %d" % session.activity_count
            if session.modified_element_ids:
                summary += ", elements modified: %d" % len(session.modified_element_ids)
        return summary

    @staticmethod
    def _status(session: EditingSession, disposition: Disposition, duration: int) -> TrackingStatus:
        return TrackingStatus(
            status=disposition.value,
            document_id=session.document_id,
            document_title=session.document_title,
            duration=duration,
            duration_label=format_duration(duration),
            has_builder_changes=session.has_builder_changes,
        )

    def _notify(self, user_id: str, status: TrackingStatus) -> None:
        if self.notifications is not None:
            self.notifications.publish(user_id, status)
