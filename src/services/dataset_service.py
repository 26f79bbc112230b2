"""데이터셋 Service — 활성 데이터셋 1개의 전환/적재/종료

전환 순서: 진행 중 검색 취소+대기 → 기존 저장소 닫기 → 새 저장소 열기 → 빈 경우 적재
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional

from src.config import settings
from src.core.catalog.assets import IconAttacher
from src.core.event_bus import CatalogEvent, EventBus
from src.core.event_types import EventTypes
from src.core.logging import get_logger
from src.db.database import DatasetStore
from src.services.ingestion_service import IngestionReport, IngestionService
from src.services.search_service import SearchService

logger = get_logger(__name__)


class DatasetService:
    """활성 데이터셋 소유자. 전환은 내부 락으로 직렬화된다."""

    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        ingestion_service: Optional[IngestionService] = None,
        attacher: Optional[IconAttacher] = None,
    ):
        self._bus = event_bus or EventBus()
        self._store = DatasetStore()
        self._ingestion = ingestion_service or IngestionService(self._bus)
        if attacher is None:
            attacher = IconAttacher(
                settings.ICONS_DIR,
                extension=settings.ICON_EXTENSION,
                max_workers=settings.ICON_WORKERS,
            )
        self._search = SearchService(self._store, attacher=attacher, event_bus=self._bus)
        self._switch_lock = threading.Lock()
        self._current_dataset: Optional[Path] = None
        self._last_report: Optional[IngestionReport] = None

    @property
    def store(self) -> DatasetStore:
        return self._store

    @property
    def search_service(self) -> SearchService:
        return self._search

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def current_dataset(self) -> Optional[Path]:
        return self._current_dataset

    @property
    def last_report(self) -> Optional[IngestionReport]:
        return self._last_report

    def database_path(self, dataset_dir: str | Path) -> Path:
        return Path(dataset_dir) / settings.DATABASE_FILENAME

    def switch(self, dataset_dir: str | Path) -> IngestionReport:
        """데이터셋 전환. 새 저장소가 비어 있으면 XML 원본에서 적재.

        Raises:
            StoreOpenError: 저장소를 열 수 없음 (이전 데이터셋은 이미 닫힘)
            IngestionError: 적재 단계 트랜잭션 실패
        """
        dataset_dir = Path(dataset_dir)
        with self._switch_lock:
            self._search.cancel_all(wait_for_completion=True)
            self._close_store()

            self._store.open(self.database_path(dataset_dir))
            self._current_dataset = dataset_dir
            self._emit(EventTypes.DATASET_OPENED, {"dataset": str(dataset_dir)})

            report = self._ingestion.load_if_empty(self._store, dataset_dir)
            self._last_report = report
            for warning in report.warnings:
                logger.warning("%s", warning)
            return report

    def close(self) -> None:
        """프로세스 종료 시 호출. 검색 워커와 저장소를 모두 해제."""
        with self._switch_lock:
            self._search.close()
            self._close_store()

    def _close_store(self) -> None:
        if not self._store.is_open:
            return
        previous = self._current_dataset
        self._store.close()
        self._current_dataset = None
        self._emit(EventTypes.DATASET_CLOSED, {"dataset": str(previous)})

    def _emit(self, event_type: str, data: dict) -> None:
        self._bus.emit(
            CatalogEvent(event_type=event_type, data=data, source="dataset_service")
        )
