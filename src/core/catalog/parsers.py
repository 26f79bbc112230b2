"""XML 원본 파서 — EquipmentData / ItemData / StrSheet_Item

파서는 (행 | RowError | FileError) 의 지연 시퀀스를 돌려준다.
한 행, 한 파일의 실패가 나머지 처리를 멈추지 않는다.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Mapping

from src.core.logging import get_logger

from .errors import SourceMissingError
from .models import (
    EquipmentRow,
    FileError,
    ItemRow,
    LocalizedRow,
    ParseEvent,
    RowError,
    RowErrorKind,
    SourceRow,
    parse_int,
)

logger = get_logger(__name__)


def _local_name(tag: object) -> str | None:
    """'{namespace}Item' → 'Item'. 주석/PI 노드는 None."""
    if not isinstance(tag, str):
        return None
    return tag.rsplit("}", 1)[-1]


class SourceParser(ABC):
    """원본 한 종류를 담당하는 파서의 공통 골격"""

    source_name: str = ""
    element_name: str = ""
    required_attributes: tuple[str, ...] = ()

    def parse(self, dataset_dir: str | Path) -> Iterator[ParseEvent]:
        """원본 위치를 확인한 뒤 지연 시퀀스를 반환.

        위치 확인은 즉시 수행한다: 원본이 통째로 없으면 여기서
        SourceMissingError가 발생한다.
        """
        files = self.locate(Path(dataset_dir))
        return self._iter_files(files)

    @abstractmethod
    def locate(self, dataset_dir: Path) -> list[Path]:
        """읽을 파일 목록. 없으면 SourceMissingError."""

    @abstractmethod
    def build_row(self, attrs: Mapping[str, str]) -> SourceRow:
        """필수 속성이 모두 있는 요소 → 행. 숫자 파싱 실패 시 ValueError."""

    def _iter_files(self, files: list[Path]) -> Iterator[ParseEvent]:
        for path in files:
            try:
                tree = ET.parse(path)
            except (ET.ParseError, OSError) as e:
                logger.warning("Error loading %s data from %s: %s", self.source_name, path, e)
                yield FileError(source_file=path, detail=str(e))
                continue

            for element in tree.iter():
                if _local_name(element.tag) != self.element_name:
                    continue
                yield self._parse_element(element, path)

    def _parse_element(self, element: ET.Element, path: Path) -> ParseEvent:
        attrs = element.attrib
        missing = [name for name in self.required_attributes if name not in attrs]
        if missing:
            logger.debug(
                "Skipping %s element in %s: missing %s",
                self.element_name,
                path.name,
                ", ".join(missing),
            )
            return RowError(
                kind=RowErrorKind.MISSING_ATTRIBUTE,
                source_file=path,
                detail=f"missing attributes: {', '.join(missing)}",
            )

        try:
            return self.build_row(attrs)
        except ValueError as e:
            logger.warning(
                "Error processing %s element in %s (%s): %s",
                self.element_name,
                path.name,
                dict(attrs),
                e,
            )
            return RowError(
                kind=RowErrorKind.INVALID_NUMBER,
                source_file=path,
                detail=str(e),
            )


class _DirectoryParser(SourceParser):
    """폴더 하나 아래 '<prefix>-*.xml' 파일 여러 개를 읽는 파서"""

    folder_name: str = ""

    def locate(self, dataset_dir: Path) -> list[Path]:
        folder = dataset_dir / self.folder_name
        if not folder.is_dir():
            raise SourceMissingError(self.source_name, folder)
        files = sorted(folder.glob(f"{self.folder_name}-*.xml"))
        if not files:
            raise SourceMissingError(self.source_name, folder)
        return files


class EquipmentStatsParser(SourceParser):
    """EquipmentData/EquipmentData-00000.xml (단일 문서)"""

    source_name = "equipment"
    element_name = "Equipment"
    required_attributes = ("equipmentId", "balance", "def", "impact", "maxAtk")

    folder_name = "EquipmentData"
    file_name = "EquipmentData-00000.xml"

    def locate(self, dataset_dir: Path) -> list[Path]:
        path = dataset_dir / self.folder_name / self.file_name
        if not path.is_file():
            raise SourceMissingError(self.source_name, path)
        return [path]

    def build_row(self, attrs: Mapping[str, str]) -> EquipmentRow:
        return EquipmentRow(
            equipment_id=parse_int(attrs["equipmentId"]),
            balance=attrs["balance"],
            defense=parse_int(attrs["def"]),
            impact=attrs["impact"],
            max_attack=parse_int(attrs["maxAtk"]),
        )


class ItemDefinitionParser(_DirectoryParser):
    """ItemData/ItemData-*.xml"""

    source_name = "item"
    element_name = "Item"
    required_attributes = ("id", "name", "icon", "rareGrade")
    folder_name = "ItemData"

    def build_row(self, attrs: Mapping[str, str]) -> ItemRow:
        level = attrs.get("level")
        link_equipment_id = attrs.get("linkEquipmentId")
        return ItemRow(
            id=parse_int(attrs["id"]),
            name_key=attrs["name"],
            icon=attrs["icon"],
            rare_grade=parse_int(attrs["rareGrade"]),
            level=parse_int(level) if level is not None else 0,
            link_equipment_id=(
                parse_int(link_equipment_id) if link_equipment_id is not None else 0
            ),
            category=attrs.get("category", ""),
        )


class LocalizationParser(_DirectoryParser):
    """StrSheet_Item/StrSheet_Item-*.xml"""

    source_name = "localization"
    element_name = "String"
    required_attributes = ("id", "string")
    folder_name = "StrSheet_Item"

    def build_row(self, attrs: Mapping[str, str]) -> LocalizedRow:
        return LocalizedRow(
            id=parse_int(attrs["id"]),
            name=attrs["string"],
            tooltip=attrs.get("toolTip", ""),
        )


def default_parsers() -> list[SourceParser]:
    """적재 순서 고정: 장비 → 아이템 → 현지화"""
    return [EquipmentStatsParser(), ItemDefinitionParser(), LocalizationParser()]
