"""적재 Service — XML 원본 → 데이터셋 저장소 (최초 1회)

저장소가 비어 있을 때만 실행한다 (items 행 수 == 0).
단계 순서 고정: 장비 → 아이템 → 현지화. 단계마다 트랜잭션 1개.
행/파일 단위 오류는 여기서 흡수되어 집계만 남는다.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from src.core.catalog.errors import IngestionError, SourceMissingError
from src.core.catalog.models import (
    EquipmentRow,
    FileError,
    ItemRow,
    LocalizedRow,
    RowError,
    RowErrorKind,
    SourceRow,
)
from src.core.catalog.parsers import SourceParser, default_parsers
from src.core.event_bus import CatalogEvent, EventBus
from src.core.event_types import EventTypes
from src.core.logging import get_logger
from src.db.database import DatasetStore
from src.db.models import Base, EquipmentStatsModel, ItemModel, LocalizedItemModel

logger = get_logger(__name__)

# 이 행 수마다 flush (세션 identity map 크기 제한)
FLUSH_EVERY = 1000


@dataclass
class StageReport:
    """단계 1개의 적재 결과"""

    stage: str
    inserted: int = 0
    row_errors: Counter = field(default_factory=Counter)  # RowErrorKind → 건수
    file_errors: list[FileError] = field(default_factory=list)
    missing: bool = False  # 원본 자체가 없음 (설정 오류)

    @property
    def skipped_rows(self) -> int:
        return sum(self.row_errors.values())


@dataclass
class IngestionReport:
    """load_if_empty 결과. skipped=True면 이미 채워진 저장소 (no-op)."""

    skipped: bool = False
    stages: list[StageReport] = field(default_factory=list)

    @property
    def total_inserted(self) -> int:
        return sum(s.inserted for s in self.stages)

    @property
    def warnings(self) -> list[str]:
        """호출자에게 보여줄 설정/파일 경고"""
        messages: list[str] = []
        for s in self.stages:
            if s.missing:
                messages.append(f"No {s.stage} source found")
            for fe in s.file_errors:
                messages.append(f"Error loading {s.stage} data from {fe.source_file}: {fe.detail}")
        return messages

    def stage(self, name: str) -> Optional[StageReport]:
        return next((s for s in self.stages if s.stage == name), None)


def _row_to_orm(row: SourceRow) -> Base:
    if isinstance(row, EquipmentRow):
        return EquipmentStatsModel(
            equipment_id=row.equipment_id,
            balance=row.balance,
            defense=row.defense,
            impact=row.impact,
            max_attack=row.max_attack,
        )
    if isinstance(row, ItemRow):
        return ItemModel(
            id=row.id,
            name_key=row.name_key,
            icon=row.icon,
            level=row.level,
            link_equipment_id=row.link_equipment_id,
            category=row.category,
            rare_grade=row.rare_grade,
        )
    if isinstance(row, LocalizedRow):
        return LocalizedItemModel(id=row.id, name=row.name, tooltip=row.tooltip)
    raise TypeError(f"Unsupported row type: {type(row).__name__}")


class IngestionService:
    """적재 조정자. 재진입 불가 — 데이터셋 전환은 호출자가 직렬화한다."""

    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        parsers: Optional[list[SourceParser]] = None,
    ):
        self._bus = event_bus
        self._parsers = parsers if parsers is not None else default_parsers()

    def load_if_empty(
        self, store: DatasetStore, dataset_dir: str | Path
    ) -> IngestionReport:
        """빈 저장소면 전 단계를 적재. 이미 채워져 있으면 즉시 반환.

        Raises:
            IngestionError: 단계 트랜잭션 자체가 실패 (해당 단계 롤백)
        """
        dataset_dir = Path(dataset_dir)

        if not store.is_empty():
            logger.info("Dataset store already populated, skipping ingestion")
            self._emit(EventTypes.INGESTION_SKIPPED, {"dataset": str(dataset_dir)})
            return IngestionReport(skipped=True)

        logger.info("Ingesting dataset from %s", dataset_dir)
        report = IngestionReport()
        for parser in self._parsers:
            stage = self._run_stage(store, parser, dataset_dir)
            report.stages.append(stage)
            self._emit(
                EventTypes.INGESTION_STAGE_COMPLETED,
                {
                    "stage": stage.stage,
                    "inserted": stage.inserted,
                    "skipped_rows": stage.skipped_rows,
                    "file_errors": len(stage.file_errors),
                    "missing": stage.missing,
                },
            )

        logger.info(
            "Ingestion finished: %d rows inserted, %d warnings",
            report.total_inserted,
            len(report.warnings),
        )
        self._emit(
            EventTypes.INGESTION_COMPLETED,
            {"dataset": str(dataset_dir), "inserted": report.total_inserted},
        )
        return report

    def _run_stage(
        self, store: DatasetStore, parser: SourceParser, dataset_dir: Path
    ) -> StageReport:
        stage = StageReport(stage=parser.source_name)

        try:
            events = parser.parse(dataset_dir)
        except SourceMissingError as e:
            logger.warning("%s", e)
            stage.missing = True
            return stage

        seen: set[int] = set()
        try:
            with store.transaction() as db:
                for event in events:
                    if isinstance(event, FileError):
                        stage.file_errors.append(event)
                        continue
                    if isinstance(event, RowError):
                        stage.row_errors[event.kind] += 1
                        continue

                    if event.key in seen:
                        logger.warning(
                            "Duplicate %s key %d, keeping first occurrence",
                            stage.stage,
                            event.key,
                        )
                        stage.row_errors[RowErrorKind.DUPLICATE_KEY] += 1
                        continue
                    seen.add(event.key)

                    db.add(_row_to_orm(event))
                    stage.inserted += 1
                    if stage.inserted % FLUSH_EVERY == 0:
                        db.flush()
        except SQLAlchemyError as e:
            logger.error("Stage '%s' rolled back: %s", stage.stage, e)
            raise IngestionError(stage.stage, str(e)) from e

        logger.info(
            "Stage '%s': %d inserted, %d rows skipped, %d files failed",
            stage.stage,
            stage.inserted,
            stage.skipped_rows,
            len(stage.file_errors),
        )
        return stage

    def _emit(self, event_type: str, data: dict) -> None:
        if self._bus is not None:
            self._bus.emit(
                CatalogEvent(event_type=event_type, data=data, source="ingestion_service")
            )
