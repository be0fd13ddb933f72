"""
Persistence Sink
Stores finalized editing sessions and answers the reporting queries over them.
"""
from __future__ import annotations

import logging
import threading
import uuid
from datetime import date, datetime, time, timezone
from typing import Dict, List, Literal, Optional, Protocol

from arango.exceptions import ArangoError
from pydantic import BaseModel

from backend.app.db.arango import ArangoDB, OUTCOMES_COLLECTION
from backend.app.models.outcome import Outcome

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "start_time": "start_ts",
    "end_time": "end_ts",
    "duration": "duration",
    "user_id": "user_id",
    "document_id": "document_id",
}


class PersistenceError(Exception):
    pass


class SessionQuery(BaseModel):
    user_id: Optional[str] = None
    document_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    orderby: Literal["start_time", "end_time", "duration", "user_id", "document_id"] = "start_time"
    order: Literal["ASC", "DESC"] = "DESC"
    limit: int = 100
    offset: int = 0

    def start_bound(self) -> Optional[float]:
        if self.start_date is None:
            return None
        return datetime.combine(self.start_date, time.min, tzinfo=timezone.utc).timestamp()

    def end_bound(self) -> Optional[float]:
        # end_date is inclusive of the whole day
        if self.end_date is None:
            return None
        return datetime.combine(self.end_date, time.max, tzinfo=timezone.utc).timestamp()


class PersistenceSink(Protocol):
    def insert(self, outcome: Outcome) -> str: ...
    def query(self, filters: SessionQuery) -> List[Outcome]: ...
    def sum_duration(self, filters: SessionQuery) -> int: ...


def _record(outcome: Outcome, record_id: str) -> Dict:
    doc = outcome.model_dump(mode="json", exclude={"id"})
    doc["_key"] = record_id
    doc["start_ts"] = outcome.start_time.timestamp()
    doc["end_ts"] = outcome.end_time.timestamp()
    return doc


class InMemoryPersistenceSink:
    def __init__(self) -> None:
        self._records: Dict[str, Outcome] = {}
        self._lock = threading.Lock()

    def insert(self, outcome: Outcome) -> str:
        record_id = uuid.uuid4().hex
        with self._lock:
            self._records[record_id] = outcome.model_copy(update={"id": record_id})
        return record_id

    def _matching(self, filters: SessionQuery) -> List[Outcome]:
        start, end = filters.start_bound(), filters.end_bound()
        with self._lock:
            items = list(self._records.values())
        if filters.user_id:
            items = [o for o in items if o.user_id == filters.user_id]
        if filters.document_id:
            items = [o for o in items if o.document_id == filters.document_id]
        if start is not None:
            items = [o for o in items if o.start_time.timestamp() >= start]
        if end is not None:
            items = [o for o in items if o.start_time.timestamp() <= end]
        return items

    def query(self, filters: SessionQuery) -> List[Outcome]:
        items = self._matching(filters)
        items.sort(key=lambda o: getattr(o, filters.orderby), reverse=filters.order == "DESC")
        if filters.limit > 0:
            items = items[filters.offset:filters.offset + filters.limit]
        return items

    def sum_duration(self, filters: SessionQuery) -> int:
        return sum(o.duration for o in self._matching(filters))


class ArangoPersistenceSink:
    def __init__(self, arango: ArangoDB, collection: str = OUTCOMES_COLLECTION) -> None:
        self._arango = arango
        self._collection_name = collection

    def _db(self):
        database = self._arango.get_db()
        if database is None:
            raise PersistenceError("ArangoDB is not available")
        return database

    def insert(self, outcome: Outcome) -> str:
        record_id = uuid.uuid4().hex
        try:
            self._db().collection(self._collection_name).insert(_record(outcome, record_id))
        except (ArangoError, OSError) as e:
            raise PersistenceError(f"Insert failed: {e}") from e
        return record_id

    def _filter_clause(self, filters: SessionQuery):
        clauses = []
        bind_vars = {"@col": self._collection_name}
        if filters.user_id:
            clauses.append("FILTER s.user_id == @user_id")
            bind_vars["user_id"] = filters.user_id
        if filters.document_id:
            clauses.append("FILTER s.document_id == @document_id")
            bind_vars["document_id"] = filters.document_id
        if filters.start_date:
            clauses.append("FILTER s.start_ts >= @start_ts")
            bind_vars["start_ts"] = filters.start_bound()
        if filters.end_date:
            clauses.append("FILTER s.start_ts <= @end_ts")
            bind_vars["end_ts"] = filters.end_bound()
        return "\n            ".join(clauses), bind_vars

    def query(self, filters: SessionQuery) -> List[Outcome]:
        where, bind_vars = self._filter_clause(filters)
        # Sort field and direction come from closed sets, never from raw input
        sort_field = SORTABLE_FIELDS[filters.orderby]
        limit = ""
        if filters.limit > 0:
            limit = "LIMIT @offset, @limit"
            bind_vars["offset"] = filters.offset
            bind_vars["limit"] = filters.limit

        aql = f"""
        FOR s IN @@col
            {where}
            SORT s.{sort_field} {filters.order}
            {limit}
            RETURN s
        """
        try:
            cursor = self._db().aql.execute(aql, bind_vars=bind_vars)
            docs = list(cursor)
        except (ArangoError, OSError) as e:
            raise PersistenceError(f"Query failed: {e}") from e

        return [Outcome.model_validate({**doc, "id": doc["_key"]}) for doc in docs]

    def sum_duration(self, filters: SessionQuery) -> int:
        where, bind_vars = self._filter_clause(filters)
        aql = f"""
        FOR s IN @@col
            {where}
            COLLECT AGGREGATE total = SUM(s.duration)
            RETURN total
        """
        try:
            result = list(self._db().aql.execute(aql, bind_vars=bind_vars))
        except (ArangoError, OSError) as e:
            raise PersistenceError(f"Duration sum failed: {e}") from e
        return int(result[0] or 0) if result else 0
