"""IngestionService 통합 테스트 (임시 폴더 XML + SQLite 파일)"""

from collections import Counter

import pytest

from src.core.catalog.errors import IngestionError
from src.core.catalog.models import RowErrorKind
from src.core.event_bus import CatalogEvent, EventBus
from src.core.event_types import EventTypes
from src.db.models import EquipmentStatsModel
from src.services.ingestion_service import IngestionService

ITEMS = [
    {"id": 1, "name": "@item:1", "icon": "Icon_Items.sword_Tex", "rareGrade": 2, "linkEquipmentId": 100, "category": "axe"},
    {"id": 2, "name": "@item:2", "icon": "Icon_Items.bow_Tex", "rareGrade": 1, "category": "bow"},
]
STRINGS = [
    {"id": 1, "string": "Iron Sword", "toolTip": "A sword"},
    {"id": 2, "string": "Iron Bow"},
]
EQUIPMENT = [
    {"equipmentId": 100, "balance": "1:1", "def": 5, "impact": "12", "maxAtk": 300},
]


@pytest.fixture()
def setup(make_dataset):
    """데이터셋 폴더 + EventBus + IngestionService"""
    root = make_dataset(items=ITEMS, strings=STRINGS, equipment=EQUIPMENT)
    bus = EventBus()
    events: list[CatalogEvent] = []
    for event_type in (
        EventTypes.INGESTION_STAGE_COMPLETED,
        EventTypes.INGESTION_COMPLETED,
        EventTypes.INGESTION_SKIPPED,
    ):
        bus.subscribe(event_type, events.append)
    return IngestionService(bus), root, events


# ── load_if_empty ────────────────────────────────────────────


class TestLoadIfEmpty:
    def test_fresh_store_ingests_all_stages(self, setup, store) -> None:
        service, root, _ = setup
        report = service.load_if_empty(store, root)

        assert report.skipped is False
        assert [s.stage for s in report.stages] == ["equipment", "item", "localization"]
        assert report.total_inserted == 5
        assert store.counts() == {"items": 2, "equipment_stats": 1, "localized_items": 2}
        assert report.warnings == []

    def test_idempotent(self, setup, store) -> None:
        service, root, _ = setup
        service.load_if_empty(store, root)
        counts_once = store.counts()

        second = service.load_if_empty(store, root)
        assert second.skipped is True
        assert second.stages == []
        assert store.counts() == counts_once

    def test_events(self, setup, store) -> None:
        service, root, events = setup
        service.load_if_empty(store, root)
        service.load_if_empty(store, root)

        types = [e.event_type for e in events]
        assert types == [
            EventTypes.INGESTION_STAGE_COMPLETED,
            EventTypes.INGESTION_STAGE_COMPLETED,
            EventTypes.INGESTION_STAGE_COMPLETED,
            EventTypes.INGESTION_COMPLETED,
            EventTypes.INGESTION_SKIPPED,
        ]
        assert events[1].data["stage"] == "item"
        assert events[1].data["inserted"] == 2

    def test_without_event_bus(self, make_dataset, store) -> None:
        root = make_dataset(items=ITEMS, strings=STRINGS, equipment=EQUIPMENT)
        report = IngestionService().load_if_empty(store, root)
        assert report.total_inserted == 5


# ── 오류 허용 ────────────────────────────────────────────────


class TestTolerance:
    def test_row_errors_counted_not_stored(self, make_dataset, store) -> None:
        items = ITEMS + [
            {"id": 3, "name": "@item:3", "icon": "i"},  # rareGrade 없음
            {"id": 4, "name": "@item:4", "icon": "i", "rareGrade": "high"},
        ]
        root = make_dataset(items=items, strings=STRINGS, equipment=EQUIPMENT)
        report = IngestionService().load_if_empty(store, root)

        item_stage = report.stage("item")
        assert item_stage.inserted == 2
        assert item_stage.skipped_rows == 2
        assert item_stage.row_errors == Counter(
            {RowErrorKind.MISSING_ATTRIBUTE: 1, RowErrorKind.INVALID_NUMBER: 1}
        )
        assert store.counts()["items"] == 2

    def test_oversized_id_skipped_stage_continues(self, make_dataset, store) -> None:
        items = ITEMS + [
            {"id": "99999999999999999999", "name": "@item:9", "icon": "i", "rareGrade": 0},
        ]
        root = make_dataset(items=items, strings=STRINGS, equipment=EQUIPMENT)
        report = IngestionService().load_if_empty(store, root)

        item_stage = report.stage("item")
        assert item_stage.inserted == 2
        assert item_stage.row_errors == Counter({RowErrorKind.INVALID_NUMBER: 1})
        assert store.counts()["items"] == 2

    def test_missing_source_is_warning(self, make_dataset, store) -> None:
        root = make_dataset(items=ITEMS, strings=STRINGS)  # EquipmentData 없음
        report = IngestionService().load_if_empty(store, root)

        equipment = report.stage("equipment")
        assert equipment.missing is True
        assert equipment.inserted == 0
        assert report.stage("item").inserted == 2
        assert report.stage("localization").inserted == 2
        assert report.warnings == ["No equipment source found"]

    def test_malformed_file_skipped(self, make_dataset, store) -> None:
        root = make_dataset(items=ITEMS, strings=STRINGS, equipment=EQUIPMENT)
        (root / "StrSheet_Item" / "StrSheet_Item-00001.xml").write_text(
            "<StrSheet_Item><String", encoding="utf-8"
        )
        report = IngestionService().load_if_empty(store, root)

        localization = report.stage("localization")
        assert localization.inserted == 2
        assert len(localization.file_errors) == 1
        assert len(report.warnings) == 1
        assert "StrSheet_Item-00001.xml" in report.warnings[0]

    def test_duplicate_keys_keep_first(self, make_dataset, write_source, store) -> None:
        root = make_dataset(items=ITEMS, strings=STRINGS, equipment=EQUIPMENT)
        write_source(
            root / "StrSheet_Item" / "StrSheet_Item-00001.xml",
            "StrSheet_Item",
            "String",
            [{"id": 1, "string": "Duplicate Name"}],
        )
        report = IngestionService().load_if_empty(store, root)

        assert report.stage("localization").row_errors[RowErrorKind.DUPLICATE_KEY] == 1
        assert store.counts()["localized_items"] == 2

    def test_empty_dataset_folder(self, tmp_path, store) -> None:
        report = IngestionService().load_if_empty(store, tmp_path)
        assert all(s.missing for s in report.stages)
        assert report.total_inserted == 0
        assert store.is_empty() is True


# ── 치명적 실패 ──────────────────────────────────────────────


class TestStageFailure:
    def test_stage_rolled_back_and_raised(self, setup, store) -> None:
        service, root, _ = setup
        # 이전 실행의 잔여 행 → 기본키 충돌 (행 단위가 아닌 트랜잭션 실패)
        with store.transaction() as db:
            db.add(
                EquipmentStatsModel(
                    equipment_id=100, balance="x", defense=0, impact="x", max_attack=0
                )
            )

        with pytest.raises(IngestionError) as exc_info:
            service.load_if_empty(store, root)

        assert exc_info.value.stage == "equipment"
        counts = store.counts()
        assert counts["equipment_stats"] == 1
        assert counts["items"] == 0
