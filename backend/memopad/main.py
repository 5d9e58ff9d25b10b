import json
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import ai, config, llm, schemas
from .database import engine
from .repository import MemoRepository
from .storage import StorageError, TableClient
from .time_utils import next_timestamp, now_iso

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "memoId, title and content are required."
MISSING_CREDENTIAL_MESSAGE = "LLM_API_KEY is not configured."

storage_client = TableClient(engine)
storage_client.create_tables()

app = FastAPI(title="Memopad API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_repository() -> MemoRepository:
    return MemoRepository(storage_client)


async def read_json_body(request: Request) -> Any:
    """Request body as parsed JSON, or None when it is empty or malformed."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.info("Rejected request body that is not valid JSON")
        return None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _read_memo_fields(payload: Any) -> Optional[Dict[str, str]]:
    if not isinstance(payload, dict):
        return None
    fields = {}
    for key in ("memoId", "title", "content"):
        value = payload.get(key)
        if not isinstance(value, str) or not value:
            return None
        fields[key] = value
    return fields


def _save_best_effort(save: Callable[[], Any], what: str, memo_id: str) -> None:
    try:
        save()
    except Exception:
        logger.exception("Failed to save %s for memo_id=%s", what, memo_id)


def _memo_or_404(repository: MemoRepository, memo_id: str) -> schemas.Memo:
    memo = repository.get_memo_by_id(memo_id)
    if memo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Memo not found")
    return memo


@app.post(
    "/api/summary",
    response_model=schemas.SummaryResponse,
    responses={400: {"model": schemas.ErrorResponse}, 500: {"model": schemas.ErrorResponse}},
)
def create_summary(
    payload: Any = Depends(read_json_body),
    repository: MemoRepository = Depends(get_repository),
):
    fields = _read_memo_fields(payload)
    if fields is None:
        return _error(status.HTTP_400_BAD_REQUEST, MISSING_FIELDS_MESSAGE)
    if not llm.is_configured():
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, MISSING_CREDENTIAL_MESSAGE)
    try:
        summary = ai.generate_summary(fields["title"], fields["content"])
    except llm.LLMError as exc:
        logger.exception("Summary generation failed for memo_id=%s", fields["memoId"])
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    _save_best_effort(
        lambda: repository.update_memo_summary(fields["memoId"], summary),
        "summary",
        fields["memoId"],
    )
    return schemas.SummaryResponse(summary=summary)


@app.post(
    "/api/tags",
    response_model=schemas.TagsResponse,
    responses={400: {"model": schemas.ErrorResponse}, 500: {"model": schemas.ErrorResponse}},
)
def create_tags(
    payload: Any = Depends(read_json_body),
    repository: MemoRepository = Depends(get_repository),
):
    fields = _read_memo_fields(payload)
    if fields is None:
        return _error(status.HTTP_400_BAD_REQUEST, MISSING_FIELDS_MESSAGE)
    if not llm.is_configured():
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, MISSING_CREDENTIAL_MESSAGE)
    try:
        tags = ai.generate_tags(fields["title"], fields["content"])
    except llm.LLMError as exc:
        logger.exception("Tag generation failed for memo_id=%s", fields["memoId"])
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    _save_best_effort(
        lambda: repository.update_memo_tags(fields["memoId"], tags),
        "tags",
        fields["memoId"],
    )
    return schemas.TagsResponse(tags=tags)


@app.get("/api/categories", response_model=List[schemas.CategoryOut])
def list_categories():
    return [schemas.CategoryOut(key=key, label=label) for key, label in schemas.MEMO_CATEGORIES.items()]


@app.get("/api/memos", response_model=List[schemas.Memo])
def list_memos(
    q: Optional[str] = None,
    category: Optional[str] = None,
    repository: MemoRepository = Depends(get_repository),
):
    if q and q.strip():
        memos = repository.search_memos(q)
        if category and category != schemas.ALL_CATEGORIES:
            memos = [memo for memo in memos if memo.category == category]
        return memos
    if category:
        return repository.get_memos_by_category(category)
    return repository.get_memos()


@app.post("/api/memos", response_model=schemas.Memo, status_code=status.HTTP_201_CREATED)
def create_memo(
    payload: schemas.MemoFormData,
    repository: MemoRepository = Depends(get_repository),
):
    timestamp = now_iso()
    memo = schemas.Memo(
        id=str(uuid.uuid4()),
        title=payload.title,
        content=payload.content,
        category=payload.category,
        tags=payload.tags,
        created_at=timestamp,
        updated_at=timestamp,
    )
    try:
        return repository.add_memo(memo)
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message) from exc


@app.get("/api/memos/{memo_id}", response_model=schemas.Memo)
def get_memo(memo_id: str, repository: MemoRepository = Depends(get_repository)):
    return _memo_or_404(repository, memo_id)


@app.put("/api/memos/{memo_id}", response_model=schemas.Memo)
def update_memo(
    memo_id: str,
    payload: schemas.MemoFormData,
    repository: MemoRepository = Depends(get_repository),
):
    existing = _memo_or_404(repository, memo_id)
    updated = existing.model_copy(
        update={
            **payload.model_dump(),
            "updated_at": next_timestamp(existing.updated_at),
        }
    )
    try:
        return repository.update_memo(updated)
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message) from exc


@app.delete("/api/memos/{memo_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_memo(memo_id: str, repository: MemoRepository = Depends(get_repository)):
    try:
        repository.delete_memo(memo_id)
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
