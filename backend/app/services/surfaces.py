"""
Editing surface adapters.

Each surface fires its own, overlapping set of triggers. The adapters map them onto
the three intents and resolve which document a request is about; everything
downstream only ever sees an already-resolved document id.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional
from urllib.parse import parse_qs, urlparse

from backend.app.models.intents import CloseSession, StartSession, UpdateSession
from backend.app.models.session import SessionSource, SessionUpdate
from backend.app.models.surfaces import BuilderHeartbeat, BuilderPing, SurfaceResult
from backend.app.services.content_extractor import builder_fingerprint
from backend.app.services.reconciler import EventReconciler

logger = logging.getLogger(__name__)

# Request locations a document id can arrive in, in lookup order
DOCUMENT_ID_PARAMS = ("post_id", "post", "editor_post_id", "elementor-preview", "document_id")
REFERER_PARAMS = ("post", "editor_post_id", "elementor-preview")


def _as_document_id(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    value = str(value).strip()
    if not value.isdigit() or int(value) == 0:
        return None
    return str(int(value))


def resolve_document_id(params: Mapping[str, Any], referer: Optional[str] = None) -> Optional[str]:
    for name in DOCUMENT_ID_PARAMS:
        document_id = _as_document_id(params.get(name))
        if document_id:
            return document_id

    if referer:
        query = parse_qs(urlparse(referer).query)
        for name in REFERER_PARAMS:
            for value in query.get(name, []):
                document_id = _as_document_id(value)
                if document_id:
                    return document_id
    return None


class ClassicEditorAdapter:
    """Form-based editor: the edit screen opens a session, a save closes it."""

    def __init__(self, reconciler: EventReconciler):
        self.reconciler = reconciler

    def edit_screen_opened(self, user_id: str, params: Mapping[str, Any], referer: Optional[str] = None) -> SurfaceResult:
        document_id = resolve_document_id(params, referer)
        start = self.reconciler.start(StartSession(
            user_id=user_id, document_id=document_id, source=SessionSource.STANDARD,
        ))
        return SurfaceResult(document_id=document_id, start=start)

    def document_saved(
        self,
        user_id: str,
        document_id: Optional[str],
        is_revision: bool = False,
        is_autosave: bool = False,
    ) -> SurfaceResult:
        if is_revision or is_autosave:
            logger.debug("Skipping %s save of %s", "revision" if is_revision else "autosave", document_id)
            return SurfaceResult(document_id=document_id, ignored="revision_or_autosave")

        close = self.reconciler.close(CloseSession(user_id=user_id, document_id=document_id))
        return SurfaceResult(document_id=document_id, close=close)


class PageBuilderAdapter:
    """
    Decoupled visual builder. Saves travel through several channels at once
    (save request, after-save callback, heartbeat, client ping flagged as save);
    all of them are forwarded and the reconciler keeps exactly one.
    """

    def __init__(self, reconciler: EventReconciler):
        self.reconciler = reconciler

    @property
    def policy(self):
        return self.reconciler.policy

    def _stored_fingerprint(self, document_id: str) -> SessionUpdate:
        document = self.reconciler.documents.get_document(document_id)
        if document is None or document.builder_data is None:
            return SessionUpdate()
        builder_hash, builder_length = builder_fingerprint(document.builder_data)
        return SessionUpdate(builder_hash=builder_hash, builder_length=builder_length)

    def editor_loaded(self, user_id: str, params: Mapping[str, Any], referer: Optional[str] = None) -> SurfaceResult:
        document_id = resolve_document_id(params, referer)
        start = self.reconciler.start(StartSession(
            user_id=user_id, document_id=document_id, source=SessionSource.BUILDER,
        ))
        return SurfaceResult(document_id=document_id, start=start)

    def start_new_session(self, user_id: str, document_id: Optional[str]) -> SurfaceResult:
        """Client reset after a save: the next episode starts now."""
        start = self.reconciler.start(StartSession(
            user_id=user_id, document_id=document_id, force_new=True, source=SessionSource.AJAX,
        ))
        return SurfaceResult(document_id=document_id, start=start)

    def session_ping(self, user_id: str, ping: BuilderPing, referer: Optional[str] = None) -> SurfaceResult:
        document_id = resolve_document_id({"post_id": ping.document_id}, referer)
        if document_id is None:
            update = self.reconciler.update(UpdateSession(user_id=user_id, document_id=None))
            return SurfaceResult(update=update)

        activity = ping.activity_data
        delta = self._stored_fingerprint(document_id).model_copy(update={
            "activity_delta": max(0, activity.changes),
            "modified_element_ids": activity.elements_modified,
            "client_timer_seconds": activity.duration if activity.duration > 0 else None,
            "last_activity_at": (
                datetime.fromtimestamp(ping.last_activity / 1000, tz=timezone.utc)
                if ping.last_activity else None
            ),
        })
        update = self.reconciler.update(UpdateSession(user_id=user_id, document_id=document_id, delta=delta))
        result = SurfaceResult(document_id=document_id, update=update)

        if ping.is_save and ping.has_changes and activity.duration >= self.policy.min_ping_save_seconds:
            result.close = self.reconciler.close(CloseSession(user_id=user_id, document_id=document_id))
        elif ping.is_save:
            logger.debug(
                "Save ping for %s not closing (timer=%ds, has_changes=%s)",
                document_id, activity.duration, ping.has_changes,
            )
        return result

    def save_builder(self, user_id: str, document_id: Optional[str], builder_data: List[Any]) -> SurfaceResult:
        """Direct save from the builder, carrying the tree being written."""
        builder_hash, builder_length = builder_fingerprint(builder_data)
        delta = SessionUpdate(builder_hash=builder_hash, builder_length=builder_length)
        close = self.reconciler.close(CloseSession(
            user_id=user_id, document_id=document_id, delta=delta, builder_data=builder_data,
        ))
        return SurfaceResult(document_id=document_id, close=close)

    def after_save(self, user_id: str, document_id: Optional[str]) -> SurfaceResult:
        delta = self._stored_fingerprint(document_id) if document_id else SessionUpdate()
        close = self.reconciler.close(CloseSession(user_id=user_id, document_id=document_id, delta=delta))
        return SurfaceResult(document_id=document_id, close=close)

    def heartbeat(self, user_id: str, heartbeat: BuilderHeartbeat, referer: Optional[str] = None) -> SurfaceResult:
        if not heartbeat.is_builder_screen:
            return SurfaceResult(ignored="not_builder_screen")

        autosave = heartbeat.data.get("wp_autosave")
        params = {
            "post_id": heartbeat.data.get("elementor_post_id") or heartbeat.post_id,
            "document_id": autosave.get("post_id") if isinstance(autosave, dict) else None,
        }
        document_id = resolve_document_id(params, referer)
        if document_id is None:
            logger.debug("Could not determine document for heartbeat on %s", heartbeat.screen_id)
            return SurfaceResult(ignored="missing_identity")

        # Heartbeats only feed sessions that already exist; they never open one
        if not self.reconciler.has_session(user_id, document_id):
            return SurfaceResult(document_id=document_id, ignored="no_session")

        update = self.reconciler.update(UpdateSession(
            user_id=user_id, document_id=document_id, delta=self._stored_fingerprint(document_id),
        ))
        result = SurfaceResult(document_id=document_id, update=update)

        if heartbeat.is_last:
            logger.debug("Finalizing session for %s from heartbeat", document_id)
            result.close = self.reconciler.close(CloseSession(user_id=user_id, document_id=document_id))
        return result
