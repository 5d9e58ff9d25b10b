"""Client-side memo state: a cache of every memo plus a filtered view.

The cache only changes after the repository confirms a write.
"""

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Dict, List, Optional

import requests

from . import config
from .repository import MemoRepository, memo_matches_query
from .schemas import ALL_CATEGORIES, Memo, MemoFormData, MemoStats
from .time_utils import next_timestamp, now_iso

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "An error occurred while loading memos."


class MemoApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MemoApiClient:
    """Calls the summary and tag endpoints of the memo API."""

    def __init__(self, base_url: Optional[str] = None, session: Any = None):
        self.base_url = (config.MEMO_API_BASE_URL if base_url is None else base_url).rstrip("/")
        self._owns_session = session is None
        self.session = session or requests.Session()

    def close(self) -> None:
        # Sessions passed in belong to the caller.
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "MemoApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _post(self, path: str, memo: Memo) -> Dict[str, Any]:
        payload = {"memoId": memo.id, "title": memo.title, "content": memo.content}
        try:
            response = self.session.post(f"{self.base_url}{path}", json=payload)
        except requests.RequestException as exc:
            raise MemoApiError(f"Request to {path} failed: {exc}") from exc
        try:
            data = response.json()
        except ValueError:
            data = {}
        if response.status_code != 200:
            message = data.get("error") if isinstance(data, dict) else None
            raise MemoApiError(message or f"Request to {path} failed", response.status_code)
        return data

    def summarize(self, memo: Memo) -> str:
        return self._post("/api/summary", memo)["summary"]

    def generate_tags(self, memo: Memo) -> List[str]:
        return list(self._post("/api/tags", memo).get("tags") or [])


class MemoController:
    def __init__(self, repository: MemoRepository, api_client: Optional[MemoApiClient] = None):
        self.repository = repository
        self.api_client = api_client
        self.memos: List[Memo] = []
        self.loading = True
        self.error: Optional[str] = None
        self.search_query = ""
        self.selected_category = ALL_CATEGORIES

    def load(self) -> None:
        self.loading = True
        self.error = None
        try:
            self.memos = self.repository.get_memos()
        except Exception:
            logger.exception("Failed to load memos")
            self.error = LOAD_ERROR_MESSAGE
        finally:
            self.loading = False

    def _replace(self, saved: Memo) -> None:
        self.memos = [saved if memo.id == saved.id else memo for memo in self.memos]

    def create_memo(self, form: MemoFormData) -> Memo:
        timestamp = now_iso()
        memo = Memo(
            id=str(uuid.uuid4()),
            **form.model_dump(),
            created_at=timestamp,
            updated_at=timestamp,
        )
        created = self.repository.add_memo(memo)
        self.memos = [created] + self.memos
        return created

    def update_memo(self, memo_id: str, form: MemoFormData) -> Optional[Memo]:
        existing = self.get_memo_by_id(memo_id)
        if existing is None:
            return None
        updated = existing.model_copy(
            update={**form.model_dump(), "updated_at": next_timestamp(existing.updated_at)}
        )
        saved = self.repository.update_memo(updated)
        self._replace(saved)
        return saved

    def delete_memo(self, memo_id: str) -> None:
        self.repository.delete_memo(memo_id)
        self.memos = [memo for memo in self.memos if memo.id != memo_id]

    def update_memo_summary(self, memo_id: str, summary: str) -> Memo:
        saved = self.repository.update_memo_summary(memo_id, summary)
        self._replace(saved)
        return saved

    def update_memo_tags(self, memo_id: str, tags: List[str]) -> Memo:
        saved = self.repository.update_memo_tags(memo_id, tags)
        self._replace(saved)
        return saved

    def _require_api_client(self) -> MemoApiClient:
        if self.api_client is None:
            self.api_client = MemoApiClient()
        return self.api_client

    def generate_summary(self, memo_id: str) -> Optional[str]:
        memo = self.get_memo_by_id(memo_id)
        if memo is None:
            return None
        summary = self._require_api_client().summarize(memo)
        try:
            self.update_memo_summary(memo_id, summary)
        except Exception:
            logger.exception("Failed to save summary for memo_id=%s", memo_id)
        return summary

    def generate_tags(self, memo_id: str) -> Optional[List[str]]:
        memo = self.get_memo_by_id(memo_id)
        if memo is None:
            return None
        tags = self._require_api_client().generate_tags(memo)
        try:
            self.update_memo_tags(memo_id, tags)
        except Exception:
            logger.exception("Failed to save tags for memo_id=%s", memo_id)
        return tags

    def search_memos(self, query: str) -> None:
        self.search_query = query

    def filter_by_category(self, category: str) -> None:
        self.selected_category = category

    def get_memo_by_id(self, memo_id: str) -> Optional[Memo]:
        for memo in self.memos:
            if memo.id == memo_id:
                return memo
        return None

    @property
    def filtered_memos(self) -> List[Memo]:
        filtered = self.memos
        if self.selected_category != ALL_CATEGORIES:
            filtered = [memo for memo in filtered if memo.category == self.selected_category]
        if self.search_query.strip():
            filtered = [memo for memo in filtered if memo_matches_query(memo, self.search_query)]
        return filtered

    @property
    def stats(self) -> MemoStats:
        by_category: Dict[str, int] = {}
        for memo in self.memos:
            by_category[memo.category] = by_category.get(memo.category, 0) + 1
        return MemoStats(total=len(self.memos), by_category=by_category, filtered=len(self.filtered_memos))

    def clear_all_memos(self) -> None:
        """Delete every memo concurrently; any failure fails the whole call.

        Memos deleted before a failure stay deleted.
        """
        memo_ids = [memo.id for memo in self.memos]
        if memo_ids:
            with ThreadPoolExecutor(max_workers=len(memo_ids)) as executor:
                futures = [executor.submit(self.repository.delete_memo, memo_id) for memo_id in memo_ids]
                wait(futures)
            for future in futures:
                error = future.exception()
                if error is not None:
                    logger.error("Failed to clear all memos: %r", error)
                    raise error
        self.memos = []
        self.search_query = ""
        self.selected_category = ALL_CATEGORIES
