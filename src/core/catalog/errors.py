"""카탈로그 예외 계층"""

from __future__ import annotations

from pathlib import Path


class CatalogError(Exception):
    """카탈로그 관련 모든 예외의 기반 클래스"""


class StoreOpenError(CatalogError):
    """데이터셋 저장소를 열거나 생성할 수 없음 (현재 open 작업에 치명적)"""

    def __init__(self, location: str | Path, reason: str) -> None:
        self.location = Path(location)
        self.reason = reason
        super().__init__(f"Cannot open dataset store at {self.location}: {reason}")


class StoreNotOpenError(CatalogError):
    """열린 저장소 없이 조회/적재를 시도함"""


class SourceMissingError(CatalogError):
    """원본 파일/폴더가 통째로 없음 — 설정 오류, 해당 단계는 0행으로 처리"""

    def __init__(self, source: str, location: Path) -> None:
        self.source = source
        self.location = location
        super().__init__(f"{source} source not found at: {location}")


class IngestionError(CatalogError):
    """단계 트랜잭션 전체가 실패함 (행 단위 오류가 아님). 재시도하지 않는다."""

    def __init__(self, stage: str, reason: str) -> None:
        self.stage = stage
        self.reason = reason
        super().__init__(f"Ingestion stage '{stage}' failed: {reason}")


class SearchError(CatalogError):
    """검색 쿼리 실행 실패"""


class SearchCancelled(CatalogError):
    """협조적 취소 — 실패가 아니다. 파이프라인 경계에서 결과 상태로 변환된다."""
