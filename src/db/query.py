"""Search query builder: SearchRequest → one parameterized SELECT."""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Select, and_, select

from src.config import settings
from src.core.catalog.models import SearchRequest
from src.db.models import EquipmentStatsModel, ItemModel, LocalizedItemModel

LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class BuiltQuery:
    statement: Select
    is_limited: bool


def escape_like(text: str, escape: str = LIKE_ESCAPE) -> str:
    """Escape LIKE wildcards so user text matches literally."""
    return (
        text.replace(escape, escape + escape)
        .replace("%", escape + "%")
        .replace("_", escape + "_")
    )


def build_search_query(
    request: SearchRequest, limit: Optional[int] = None
) -> BuiltQuery:
    """Build the search SELECT for ``request``.

    - numeric request: exact ``items.id`` match, text ignored
    - text request: case-insensitive substring match on the localized name
    - categories: exact ``items.category IN (...)``, bound parameters
    - no text and no categories: first ``limit`` rows by id, flagged limited

    Items without a localized row are excluded; items without equipment
    stats, or with link_equipment_id 0, are kept with NULL equipment columns.
    """
    if limit is None:
        limit = settings.SEARCH_RESULT_LIMIT

    stmt = (
        select(
            ItemModel.id,
            ItemModel.icon,
            ItemModel.level,
            LocalizedItemModel.name,
            LocalizedItemModel.tooltip,
            ItemModel.link_equipment_id,
            ItemModel.rare_grade,
            EquipmentStatsModel.equipment_id,
            EquipmentStatsModel.balance,
            EquipmentStatsModel.defense,
            EquipmentStatsModel.impact,
            EquipmentStatsModel.max_attack,
        )
        .select_from(ItemModel)
        .join(LocalizedItemModel, LocalizedItemModel.id == ItemModel.id)
        .outerjoin(
            EquipmentStatsModel,
            and_(
                # 0 = 장비 링크 없음. equipmentId 0 행이 있어도 붙이지 않는다
                ItemModel.link_equipment_id != 0,
                ItemModel.link_equipment_id == EquipmentStatsModel.equipment_id,
            ),
        )
    )

    if request.is_numeric:
        stmt = stmt.where(ItemModel.id == request.numeric_id)
    else:
        pattern = f"%{escape_like(request.text)}%"
        stmt = stmt.where(LocalizedItemModel.name.ilike(pattern, escape=LIKE_ESCAPE))

    if request.categories:
        stmt = stmt.where(ItemModel.category.in_(sorted(request.categories)))

    stmt = stmt.order_by(ItemModel.id)

    is_limited = request.is_unfiltered
    if is_limited:
        stmt = stmt.limit(limit)

    return BuiltQuery(statement=stmt, is_limited=is_limited)
