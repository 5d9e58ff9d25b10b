from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

MEMO_CATEGORIES: Dict[str, str] = {
    "personal": "Personal",
    "work": "Work",
    "study": "Study",
    "idea": "Ideas",
    "other": "Other",
}
ALL_CATEGORIES = "all"

MemoCategory = Literal["personal", "work", "study", "idea", "other"]


class Memo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    content: str = ""
    category: str
    tags: List[str] = Field(default_factory=list)
    summary: Optional[str] = None
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")


class MemoFormData(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = ""
    category: MemoCategory = "other"
    tags: List[str] = Field(default_factory=list)


class MemoStats(BaseModel):
    total: int
    by_category: Dict[str, int] = Field(default_factory=dict, alias="byCategory")
    filtered: int

    model_config = ConfigDict(populate_by_name=True)


class CategoryOut(BaseModel):
    key: str
    label: str


class SummaryResponse(BaseModel):
    summary: str


class TagsResponse(BaseModel):
    tags: List[str]


class ErrorResponse(BaseModel):
    error: str
