"""Shared test fixtures."""

from pathlib import Path
from typing import Callable, Iterable, Optional
from xml.sax.saxutils import quoteattr

import pytest

from src.db.database import DatasetStore
from src.db.models import EquipmentStatsModel, ItemModel, LocalizedItemModel

NAMESPACE_BASE = "https://vezel.dev/novadrop/dc/"


def _render_source(root: str, element: str, rows: Iterable[dict]) -> str:
    lines = [
        '<?xml version="1.0" encoding="utf-8"?>',
        f'<{root} xmlns="{NAMESPACE_BASE}{root}">',
    ]
    for attrs in rows:
        rendered = " ".join(f"{k}={quoteattr(str(v))}" for k, v in attrs.items())
        lines.append(f"  <{element} {rendered} />")
    lines.append(f"</{root}>")
    return "\n".join(lines)


@pytest.fixture()
def write_source() -> Callable[..., Path]:
    """XML 원본 파일 1개 작성: write_source(path, root, element, rows)"""

    def _write(path: Path, root: str, element: str, rows: Iterable[dict]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(_render_source(root, element, rows), encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def make_dataset(tmp_path, write_source) -> Callable[..., Path]:
    """데이터셋 폴더 생성. None 인 원본은 만들지 않는다."""

    def _make(
        items: Optional[list[dict]] = None,
        strings: Optional[list[dict]] = None,
        equipment: Optional[list[dict]] = None,
        name: str = "1. Test",
    ) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        if equipment is not None:
            write_source(
                root / "EquipmentData" / "EquipmentData-00000.xml",
                "EquipmentData",
                "Equipment",
                equipment,
            )
        if items is not None:
            write_source(
                root / "ItemData" / "ItemData-00000.xml", "ItemData", "Item", items
            )
        if strings is not None:
            write_source(
                root / "StrSheet_Item" / "StrSheet_Item-00000.xml",
                "StrSheet_Item",
                "String",
                strings,
            )
        return root

    return _make


@pytest.fixture()
def store(tmp_path) -> DatasetStore:
    """새 SQLite 파일에 열린 저장소 (스키마 생성됨)"""
    dataset_store = DatasetStore()
    dataset_store.open(tmp_path / "ItemDatabase.sqlite")
    try:
        yield dataset_store
    finally:
        dataset_store.close()


@pytest.fixture()
def insert_rows(store) -> Callable[..., None]:
    """ORM으로 직접 행 삽입 (쿼리 테스트용)

    items: (id, name, category[, link_equipment_id]) 튜플
    equipment: (equipment_id, balance, defense, impact, max_attack) 튜플
    """

    def _insert(items=(), equipment=(), localize: bool = True) -> None:
        with store.transaction() as db:
            for spec in items:
                item_id, name, category, *rest = spec
                link = rest[0] if rest else 0
                db.add(
                    ItemModel(
                        id=item_id,
                        name_key=f"@item:{item_id}",
                        icon=f"Icon_Items.item_{item_id}_Tex",
                        level=1,
                        link_equipment_id=link,
                        category=category,
                        rare_grade=0,
                    )
                )
                if localize:
                    db.add(LocalizedItemModel(id=item_id, name=name, tooltip=""))
            for equipment_id, balance, defense, impact, max_attack in equipment:
                db.add(
                    EquipmentStatsModel(
                        equipment_id=equipment_id,
                        balance=balance,
                        defense=defense,
                        impact=impact,
                        max_attack=max_attack,
                    )
                )

    return _insert
