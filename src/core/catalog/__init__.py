"""아이템 카탈로그 Core — 순수 Python, DB 세션 무관"""

from .assets import IconAttacher, load_icon, resolve_icon_path
from .cancellation import CancelToken
from .categories import DEFAULT_CATEGORY_GROUPS, expand_groups
from .errors import (
    CatalogError,
    IngestionError,
    SearchCancelled,
    SearchError,
    SourceMissingError,
    StoreNotOpenError,
    StoreOpenError,
)
from .models import (
    EquipmentRow,
    FileError,
    ItemRecord,
    ItemRow,
    LocalizedRow,
    RowError,
    RowErrorKind,
    SearchOutcome,
    SearchRequest,
    SearchResult,
    SearchStatus,
)
from .parsers import (
    EquipmentStatsParser,
    ItemDefinitionParser,
    LocalizationParser,
    SourceParser,
    default_parsers,
)

__all__ = [
    "IconAttacher",
    "load_icon",
    "resolve_icon_path",
    "CancelToken",
    "DEFAULT_CATEGORY_GROUPS",
    "expand_groups",
    "CatalogError",
    "IngestionError",
    "SearchCancelled",
    "SearchError",
    "SourceMissingError",
    "StoreNotOpenError",
    "StoreOpenError",
    "EquipmentRow",
    "FileError",
    "ItemRecord",
    "ItemRow",
    "LocalizedRow",
    "RowError",
    "RowErrorKind",
    "SearchOutcome",
    "SearchRequest",
    "SearchResult",
    "SearchStatus",
    "EquipmentStatsParser",
    "ItemDefinitionParser",
    "LocalizationParser",
    "SourceParser",
    "default_parsers",
]
