"""아이콘 첨부 — 결과 레코드마다 아이콘 이미지를 병렬 로드"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import Iterable, Optional

from PIL import Image

from src.core.logging import get_logger

from .cancellation import CancelToken
from .models import ItemRecord

logger = get_logger(__name__)


def resolve_icon_path(
    icons_root: str | Path, icon: str, extension: str = ".png"
) -> Optional[Path]:
    """'Icon_Items.sword_Tex' → <icons_root>/Icon_Items/sword_Tex.png

    빈 참조나 경로 구분자가 섞인 참조는 None.
    """
    segments = [s for s in (icon or "").split(".") if s]
    if not segments:
        return None
    if any("/" in s or "\\" in s for s in segments):
        return None
    *folders, name = segments
    return Path(icons_root).joinpath(*folders, name + extension)


def load_icon(path: Path) -> Optional[Image.Image]:
    """이미지 디코드. 파일 없음/디코드 실패는 None."""
    if not path.is_file():
        return None
    try:
        with Image.open(path) as img:
            img.load()
            return img.copy()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        logger.debug("Icon load failed for %s: %s", path, e)
        return None


class IconAttacher:
    """
    검색 결과 배치에 아이콘을 붙인다.
    워커 풀 크기 = 가용 CPU 수. 각 워커는 자기 레코드의 icon_image만 쓴다.
    """

    def __init__(
        self,
        icons_root: str | Path,
        extension: str = ".png",
        max_workers: Optional[int] = None,
    ) -> None:
        self.icons_root = Path(icons_root)
        self.extension = extension
        self.max_workers = max_workers or os.cpu_count() or 1

    def resolve(self, icon: str) -> Optional[Path]:
        return resolve_icon_path(self.icons_root, icon, self.extension)

    def attach(
        self, records: Iterable[ItemRecord], cancel: Optional[CancelToken] = None
    ) -> int:
        """아이콘 로드 후 record.icon_image 설정. 반환: 붙은 아이콘 수.

        취소는 각 항목 시작 전에 확인한다. 이미 시작한 로드는 끝까지 진행.
        """
        targets = [r for r in records if r.icon]
        if not targets:
            return 0

        with ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(targets)),
            thread_name_prefix="icon-loader",
        ) as pool:
            attached = sum(pool.map(partial(self._attach_one, cancel=cancel), targets))

        logger.debug("Attached %d/%d icons", attached, len(targets))
        return attached

    def _attach_one(
        self, record: ItemRecord, cancel: Optional[CancelToken] = None
    ) -> bool:
        if cancel is not None and cancel.cancelled:
            return False
        path = self.resolve(record.icon)
        if path is None:
            return False
        record.icon_image = load_icon(path)
        return record.icon_image is not None
