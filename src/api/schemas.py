"""API request/response schemas."""

from typing import Optional

from pydantic import BaseModel, Field


# === Request Schemas ===


class DatasetSwitchRequest(BaseModel):
    """데이터셋 전환 요청"""

    path: str = Field(..., min_length=1, description="XML 원본이 들어있는 데이터셋 폴더")


# === Response Schemas ===


class ItemInfo(BaseModel):
    """검색 결과 아이템. 장비 수치가 없으면 null (0 아님)."""

    id: int
    icon: str
    level: int
    name: str
    tooltip: str
    link_equipment_id: int
    rare_grade: int
    has_equipment_stats: bool
    balance: Optional[str] = None
    defense: Optional[int] = None
    impact: Optional[str] = None
    max_attack: Optional[int] = None
    has_icon: bool = False


class SearchResponse(BaseModel):
    """검색 응답"""

    status: str
    items: list[ItemInfo] = []
    total: int
    is_limited: bool
    message: str


class CategoryGroupsResponse(BaseModel):
    """필터용 카테고리 그룹"""

    groups: dict[str, list[str]]


class StageInfo(BaseModel):
    """적재 단계 요약"""

    stage: str
    inserted: int
    skipped_rows: int
    file_errors: int
    missing: bool


class DatasetResponse(BaseModel):
    """데이터셋 상태 / 전환 결과"""

    dataset: Optional[str] = None
    counts: dict[str, int] = {}
    ingestion_skipped: Optional[bool] = None
    stages: list[StageInfo] = []
    warnings: list[str] = []


class ErrorResponse(BaseModel):
    """에러 응답"""

    detail: str
