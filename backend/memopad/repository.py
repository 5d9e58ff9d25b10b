"""Memo persistence on top of the table client.

Error policy differs per operation and callers depend on it: listing reads
degrade to ``[]``, ``get_memo_by_id`` degrades to ``None`` and every write
re-raises the :class:`~memopad.storage.StorageError`.
"""

import logging
from typing import Any, Dict, List, Optional

from . import models
from .schemas import ALL_CATEGORIES, Memo
from .storage import NO_ROWS, StorageError, TableClient
from .time_utils import next_timestamp

logger = logging.getLogger(__name__)

MEMOS_TABLE = models.MemoRow.__tablename__


def row_to_memo(row: Dict[str, Any]) -> Memo:
    return Memo(
        id=row["id"],
        title=row["title"],
        content=row.get("content") or "",
        category=row["category"],
        tags=list(row.get("tags") or []),
        summary=row.get("summary") or None,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def memo_matches_query(memo: Memo, query: str) -> bool:
    """Case-insensitive substring match against title, content or any tag."""
    query_lower = query.lower()
    if query_lower in memo.title.lower():
        return True
    if query_lower in memo.content.lower():
        return True
    return any(query_lower in tag.lower() for tag in memo.tags)


class MemoRepository:
    def __init__(self, client: TableClient):
        self.client = client

    def _memos(self):
        return self.client.table(MEMOS_TABLE)

    def get_memos(self) -> List[Memo]:
        result = self._memos().select().order("created_at", ascending=False).execute()
        if result.error:
            logger.error("Error loading memos: %r", result.error)
            return []
        return [row_to_memo(row) for row in result.data or []]

    def add_memo(self, memo: Memo) -> Memo:
        result = (
            self._memos()
            .insert(
                {
                    "id": memo.id,
                    "title": memo.title,
                    "content": memo.content,
                    "category": memo.category,
                    "tags": list(memo.tags),
                    "summary": memo.summary or None,
                    "created_at": memo.created_at,
                    "updated_at": memo.updated_at,
                }
            )
            .select()
            .single()
            .execute()
        )
        if result.error:
            logger.error("Error adding memo id=%s: %r", memo.id, result.error)
            raise result.error
        return row_to_memo(result.data)

    def update_memo(self, memo: Memo) -> Memo:
        result = (
            self._memos()
            .update(
                {
                    "title": memo.title,
                    "content": memo.content,
                    "category": memo.category,
                    "tags": list(memo.tags),
                    "summary": memo.summary or None,
                    "updated_at": memo.updated_at,
                }
            )
            .eq("id", memo.id)
            .select()
            .single()
            .execute()
        )
        if result.error:
            logger.error("Error updating memo id=%s: %r", memo.id, result.error)
            raise result.error
        return row_to_memo(result.data)

    def delete_memo(self, memo_id: str) -> None:
        result = self._memos().delete().eq("id", memo_id).execute()
        if result.error:
            logger.error("Error deleting memo id=%s: %r", memo_id, result.error)
            raise result.error

    def search_memos(self, query: str) -> List[Memo]:
        result = self._memos().select().order("created_at", ascending=False).execute()
        if result.error:
            logger.error("Error searching memos: %r", result.error)
            return []
        memos = [row_to_memo(row) for row in result.data or []]
        return [memo for memo in memos if memo_matches_query(memo, query)]

    def get_memos_by_category(self, category: str) -> List[Memo]:
        query = self._memos().select().order("created_at", ascending=False)
        if category != ALL_CATEGORIES:
            query = query.eq("category", category)
        result = query.execute()
        if result.error:
            logger.error("Error filtering memos by category=%s: %r", category, result.error)
            return []
        return [row_to_memo(row) for row in result.data or []]

    def get_memo_by_id(self, memo_id: str) -> Optional[Memo]:
        result = self._memos().select().eq("id", memo_id).single().execute()
        if result.error:
            if result.error.code != NO_ROWS:
                logger.error("Error getting memo id=%s: %r", memo_id, result.error)
            return None
        return row_to_memo(result.data)

    def _update_fields(self, memo_id: str, values: Dict[str, Any]) -> Memo:
        current = self._memos().select().eq("id", memo_id).single().execute()
        if current.error:
            raise current.error
        values = dict(values, updated_at=next_timestamp(current.data["updated_at"]))
        result = self._memos().update(values).eq("id", memo_id).select().single().execute()
        if result.error:
            raise result.error
        return row_to_memo(result.data)

    def update_memo_summary(self, memo_id: str, summary: str) -> Memo:
        try:
            return self._update_fields(memo_id, {"summary": summary})
        except StorageError as exc:
            logger.error("Error updating summary for memo id=%s: %r", memo_id, exc)
            raise

    def update_memo_tags(self, memo_id: str, tags: List[str]) -> Memo:
        try:
            return self._update_fields(memo_id, {"tags": list(tags)})
        except StorageError as exc:
            logger.error("Error updating tags for memo id=%s: %r", memo_id, exc)
            raise
