"""DatasetService 테스트 (전환, 적재 게이트, 종료)"""

import pytest
from sqlalchemy import create_engine, text

from src.config import settings
from src.core.catalog.errors import StoreOpenError
from src.core.event_types import EventTypes
from src.services.dataset_service import DatasetService

ITEMS = [{"id": 1, "name": "@item:1", "icon": "Icon_Items.a_Tex", "rareGrade": 0, "category": "axe"}]
STRINGS = [{"id": 1, "string": "Iron Sword"}]


@pytest.fixture()
def dataset_service():
    service = DatasetService()
    try:
        yield service
    finally:
        service.close()


class TestSwitch:
    def test_first_open_ingests(self, dataset_service, make_dataset) -> None:
        root = make_dataset(items=ITEMS, strings=STRINGS)
        report = dataset_service.switch(root)

        assert report.skipped is False
        assert dataset_service.current_dataset == root
        assert dataset_service.store.location == root / settings.DATABASE_FILENAME
        assert (root / settings.DATABASE_FILENAME).exists()
        assert dataset_service.store.counts()["items"] == 1
        assert dataset_service.last_report is report

    def test_reopen_skips_ingestion(self, dataset_service, make_dataset) -> None:
        root = make_dataset(items=ITEMS, strings=STRINGS)
        dataset_service.switch(root)
        report = dataset_service.switch(root)
        assert report.skipped is True
        assert dataset_service.store.counts()["items"] == 1

    def test_switch_between_datasets(self, dataset_service, make_dataset) -> None:
        first = make_dataset(items=ITEMS, strings=STRINGS, name="1. Live")
        second = make_dataset(
            items=ITEMS + [{"id": 2, "name": "@item:2", "icon": "i", "rareGrade": 0}],
            strings=STRINGS + [{"id": 2, "string": "Iron Bow"}],
            name="2. Test",
        )
        dataset_service.switch(first)
        dataset_service.switch(second)

        assert dataset_service.current_dataset == second
        outcome = dataset_service.search_service.search("Iron").result(timeout=10)
        assert outcome.delivered == 2

    def test_switch_events(self, dataset_service, make_dataset) -> None:
        events = []
        for event_type in (EventTypes.DATASET_OPENED, EventTypes.DATASET_CLOSED):
            dataset_service.event_bus.subscribe(event_type, events.append)

        first = make_dataset(items=ITEMS, strings=STRINGS, name="a")
        second = make_dataset(items=ITEMS, strings=STRINGS, name="b")
        dataset_service.switch(first)
        dataset_service.switch(second)

        assert [(e.event_type, e.data["dataset"]) for e in events] == [
            (EventTypes.DATASET_OPENED, str(first)),
            (EventTypes.DATASET_CLOSED, str(first)),
            (EventTypes.DATASET_OPENED, str(second)),
        ]

    def test_open_failure_leaves_no_dataset(self, dataset_service, make_dataset, tmp_path) -> None:
        dataset_service.switch(make_dataset(items=ITEMS, strings=STRINGS))
        with pytest.raises(StoreOpenError):
            dataset_service.switch(tmp_path / "does" / "not" / "exist")
        assert dataset_service.current_dataset is None
        assert dataset_service.store.is_open is False

    def test_foreign_database_is_open_error(self, dataset_service, tmp_path) -> None:
        engine = create_engine(f"sqlite:///{tmp_path / settings.DATABASE_FILENAME}")
        with engine.begin() as conn:
            conn.execute(text("CREATE TABLE notes (body TEXT)"))
        engine.dispose()

        with pytest.raises(StoreOpenError):
            dataset_service.switch(tmp_path)
        assert dataset_service.store.is_open is False


def test_close_releases_store(make_dataset) -> None:
    service = DatasetService()
    service.switch(make_dataset(items=ITEMS, strings=STRINGS))
    service.close()
    assert service.store.is_open is False
    service.close()
