"""Catalog API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from src.api.schemas import (
    CategoryGroupsResponse,
    DatasetResponse,
    DatasetSwitchRequest,
    ErrorResponse,
    ItemInfo,
    SearchResponse,
    StageInfo,
)
from src.core.catalog.categories import DEFAULT_CATEGORY_GROUPS, expand_groups
from src.core.catalog.errors import (
    IngestionError,
    SearchError,
    StoreNotOpenError,
    StoreOpenError,
)
from src.core.catalog.models import ItemRecord, SearchRequest
from src.core.logging import get_logger
from src.services.dataset_service import DatasetService
from src.services.ingestion_service import IngestionReport

logger = get_logger(__name__)

router = APIRouter(prefix="/catalog", tags=["catalog"])


def get_dataset_service(request: Request) -> DatasetService:
    """DatasetService 인스턴스 반환 (의존성 주입)"""
    service: DatasetService = request.app.state.dataset_service
    return service


def _build_item_info(record: ItemRecord) -> ItemInfo:
    return ItemInfo(
        id=record.id,
        icon=record.icon,
        level=record.level,
        name=record.name,
        tooltip=record.tooltip,
        link_equipment_id=record.link_equipment_id,
        rare_grade=record.rare_grade,
        has_equipment_stats=record.has_equipment_stats,
        balance=record.balance,
        defense=record.defense,
        impact=record.impact,
        max_attack=record.max_attack,
        has_icon=record.icon_image is not None,
    )


def _build_dataset_response(
    service: DatasetService, report: IngestionReport | None = None
) -> DatasetResponse:
    response = DatasetResponse(
        dataset=str(service.current_dataset) if service.current_dataset else None,
        counts=service.store.counts() if service.store.is_open else {},
    )
    if report is not None:
        response.ingestion_skipped = report.skipped
        response.stages = [
            StageInfo(
                stage=s.stage,
                inserted=s.inserted,
                skipped_rows=s.skipped_rows,
                file_errors=len(s.file_errors),
                missing=s.missing,
            )
            for s in report.stages
        ]
        response.warnings = report.warnings
    return response


@router.get(
    "/search",
    response_model=SearchResponse,
    responses={503: {"model": ErrorResponse}},
)
def search_items(
    q: str = "",
    category: list[str] = Query(default=[]),
    service: DatasetService = Depends(get_dataset_service),
) -> SearchResponse:
    """
    아이템 검색

    정수 입력은 ID 일치, 그 외는 이름 부분 일치(대소문자 무시).
    category 에는 카테고리명 또는 그룹명(Weapons 등)을 여러 번 줄 수 있다.
    """
    request = SearchRequest.from_text(q, expand_groups(category))
    items: list[ItemInfo] = []

    try:
        outcome = service.search_service.run(
            request,
            on_batch=lambda batch: items.extend(_build_item_info(r) for r in batch),
        )
    except StoreNotOpenError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except SearchError as e:
        logger.error("Search failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))

    return SearchResponse(
        status=outcome.status.value,
        items=items,
        total=outcome.total,
        is_limited=outcome.is_limited,
        message=outcome.status_message(),
    )


@router.get("/categories", response_model=CategoryGroupsResponse)
def list_categories() -> CategoryGroupsResponse:
    """필터용 기본 카테고리 그룹"""
    return CategoryGroupsResponse(
        groups={name: list(values) for name, values in DEFAULT_CATEGORY_GROUPS.items()}
    )


@router.get("/dataset", response_model=DatasetResponse)
def get_dataset(
    service: DatasetService = Depends(get_dataset_service),
) -> DatasetResponse:
    """현재 데이터셋과 테이블별 행 수"""
    return _build_dataset_response(service, service.last_report)


@router.post(
    "/dataset",
    response_model=DatasetResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def switch_dataset(
    body: DatasetSwitchRequest,
    service: DatasetService = Depends(get_dataset_service),
) -> DatasetResponse:
    """
    데이터셋 전환

    진행 중 검색을 취소하고 새 저장소를 연다. 비어 있으면 XML 원본에서 적재.
    """
    try:
        report = service.switch(body.path)
    except StoreOpenError as e:
        logger.error("Failed to open dataset: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    except IngestionError as e:
        logger.error("Failed to ingest dataset: %s", e)
        raise HTTPException(status_code=500, detail=str(e))

    logger.info("Dataset switched: %s", body.path)
    return _build_dataset_response(service, report)
