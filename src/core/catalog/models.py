"""카탈로그 도메인 모델 (DB 무관)"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional, Union

_INTEGER_RE = re.compile(r"^\s*[+-]?\d+\s*$")

# SQLite INTEGER 범위 (부호 있는 64비트)
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


# ── 적재 행 (Source Parser 출력) ──────────────────────────────


@dataclass(frozen=True)
class EquipmentRow:
    """EquipmentData 1행"""

    equipment_id: int
    balance: str  # 불투명 문자열 (비율/공식 라벨)
    defense: int
    impact: str
    max_attack: int

    @property
    def key(self) -> int:
        return self.equipment_id


@dataclass(frozen=True)
class ItemRow:
    """ItemData 1행"""

    id: int
    name_key: str  # 현지화 키 (참고용)
    icon: str  # "Icon_Items.sword_Tex" 형태
    rare_grade: int  # 범위 미정: 열린 정수로 둔다
    level: int = 0
    link_equipment_id: int = 0  # 0 = 장비 없음
    category: str = ""

    @property
    def key(self) -> int:
        return self.id


@dataclass(frozen=True)
class LocalizedRow:
    """StrSheet_Item 1행"""

    id: int
    name: str
    tooltip: str = ""

    @property
    def key(self) -> int:
        return self.id


class RowErrorKind(str, Enum):
    MISSING_ATTRIBUTE = "missing_attribute"
    INVALID_NUMBER = "invalid_number"
    DUPLICATE_KEY = "duplicate_key"


@dataclass(frozen=True)
class RowError:
    """행 단위 검증 실패. 해당 행만 건너뛴다."""

    kind: RowErrorKind
    source_file: Path
    detail: str


@dataclass(frozen=True)
class FileError:
    """문서 단위 파싱 실패. 해당 파일만 건너뛴다."""

    source_file: Path
    detail: str


SourceRow = Union[EquipmentRow, ItemRow, LocalizedRow]
ParseEvent = Union[EquipmentRow, ItemRow, LocalizedRow, RowError, FileError]


# ── 검색 ──────────────────────────────────────────────────────


def parse_int(value: str) -> int:
    """부호/앞뒤 공백만 허용하는 정수 파싱. 실패 시 ValueError.

    SQLite INTEGER에 담기지 않는 값도 ValueError.
    """
    if not _INTEGER_RE.match(value):
        raise ValueError(f"not an integer: {value!r}")
    number = int(value)
    if not INT64_MIN <= number <= INT64_MAX:
        raise ValueError(f"integer out of range: {value!r}")
    return number


@dataclass(frozen=True)
class SearchRequest:
    """검색 요청. is_numeric이면 numeric_id 일치, 아니면 이름 부분 일치."""

    text: str = ""
    is_numeric: bool = False
    numeric_id: int = 0
    categories: frozenset[str] = frozenset()

    @classmethod
    def from_text(
        cls, text: str, categories: Iterable[str] = ()
    ) -> SearchRequest:
        """입력창 텍스트로 요청 생성. 정수로 파싱되면 ID 검색."""
        text = (text or "").strip()
        try:
            numeric_id = parse_int(text)
            is_numeric = True
        except ValueError:
            numeric_id = 0
            is_numeric = False
        return cls(
            text=text,
            is_numeric=is_numeric,
            numeric_id=numeric_id,
            categories=frozenset(categories),
        )

    @property
    def is_unfiltered(self) -> bool:
        """검색어도 카테고리도 없는 '전체 보기' 요청"""
        return not self.text and not self.categories


@dataclass
class ItemRecord:
    """검색 결과 1건. 장비 수치는 has_equipment_stats일 때만 채워진다."""

    id: int
    icon: str
    level: int
    name: str
    tooltip: str
    link_equipment_id: int
    rare_grade: int

    has_equipment_stats: bool = False
    balance: Optional[str] = None
    defense: Optional[int] = None
    impact: Optional[str] = None
    max_attack: Optional[int] = None

    # IconAttacher가 채운다 (PIL.Image.Image)
    icon_image: Optional[Any] = field(default=None, repr=False, compare=False)


@dataclass
class SearchResult:
    items: list[ItemRecord] = field(default_factory=list)
    is_limited: bool = False


class SearchStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class SearchOutcome:
    """검색 파이프라인 최종 상태. CANCELLED는 실패가 아니다."""

    status: SearchStatus
    delivered: int = 0
    total: int = 0
    is_limited: bool = False
    limit: Optional[int] = None

    @property
    def completed(self) -> bool:
        return self.status == SearchStatus.COMPLETED

    def status_message(self) -> str:
        if self.status == SearchStatus.CANCELLED:
            return f"Search cancelled ({self.delivered} items loaded)"
        message = f"Showing {self.delivered} items"
        if self.is_limited:
            message += (
                f" (limited to {self.limit} when no search/filter is active)"
            )
        return message
