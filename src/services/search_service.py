"""검색 Service — 쿼리 실행, 배치 전달, 아이콘 첨부, 취소

흐름: SearchRequest → build_search_query → SearchExecutor (행 스트리밍)
      → 배치 단위로 IconAttacher → on_batch 콜백
새 검색 제출 시 진행 중인 이전 검색은 취소된다 (cancel-and-replace).
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from src.config import settings
from src.core.catalog.assets import IconAttacher
from src.core.catalog.cancellation import CancelToken
from src.core.catalog.errors import SearchCancelled, SearchError
from src.core.catalog.models import (
    ItemRecord,
    SearchOutcome,
    SearchRequest,
    SearchResult,
    SearchStatus,
)
from src.core.event_bus import CatalogEvent, EventBus
from src.core.event_types import EventTypes
from src.core.logging import get_logger
from src.db.database import DatasetStore
from src.db.query import build_search_query

logger = get_logger(__name__)

BatchHandler = Callable[[list[ItemRecord]], None]


class SearchExecutor:
    """쿼리 실행 + 행 → ItemRecord 변환. 저장소를 변경하지 않는다."""

    def execute(
        self,
        store: DatasetStore,
        request: SearchRequest,
        cancel: Optional[CancelToken] = None,
        limit: Optional[int] = None,
    ) -> SearchResult:
        """검색 실행. 매 행마다 취소를 확인한다.

        Raises:
            SearchCancelled: 스캔 도중 취소됨 (부분 결과는 버린다)
            SearchError: 쿼리 실행 실패
        """
        cancel = cancel or CancelToken()
        built = build_search_query(request, limit)
        items: list[ItemRecord] = []

        # 대기열에서 교체된 검색은 쿼리 전에 끝낸다
        cancel.raise_if_cancelled()
        try:
            with store.session() as db:
                for row in db.execute(built.statement):
                    cancel.raise_if_cancelled()
                    items.append(self._row_to_record(row))
        except SQLAlchemyError as e:
            raise SearchError(f"Search query failed: {e}") from e
        # 결과 0행이어도 취소 여부를 반영
        cancel.raise_if_cancelled()

        return SearchResult(items=items, is_limited=built.is_limited)

    @staticmethod
    def _row_to_record(row) -> ItemRecord:
        record = ItemRecord(
            id=row.id,
            icon=row.icon or "",
            level=row.level or 0,
            name=row.name or "",
            tooltip=row.tooltip or "",
            link_equipment_id=row.link_equipment_id or 0,
            rare_grade=row.rare_grade,
        )
        # 장비 수치 없음 = "해당 없음". 0으로 채우지 않는다.
        if row.equipment_id is not None:
            record.has_equipment_stats = True
            record.balance = row.balance
            record.defense = row.defense
            record.impact = row.impact
            record.max_attack = row.max_attack
        return record


class SearchService:
    """검색 파이프라인 + 요청 교체"""

    def __init__(
        self,
        store: DatasetStore,
        attacher: Optional[IconAttacher] = None,
        event_bus: Optional[EventBus] = None,
        executor: Optional[SearchExecutor] = None,
        batch_size: Optional[int] = None,
        result_limit: Optional[int] = None,
    ):
        self._store = store
        self._attacher = attacher
        self._bus = event_bus
        self._executor = executor or SearchExecutor()
        self._batch_size = batch_size or settings.SEARCH_BATCH_SIZE
        self._limit = result_limit or settings.SEARCH_RESULT_LIMIT

        self._worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="search")
        self._lock = threading.Lock()
        self._current_token: Optional[CancelToken] = None
        self._current_future: Optional[Future] = None

    # === 동기 실행 ===

    def run(
        self,
        request: SearchRequest,
        on_batch: Optional[BatchHandler] = None,
        cancel: Optional[CancelToken] = None,
    ) -> SearchOutcome:
        """검색 1건 실행. 결과는 Id 순서의 배치로 on_batch에 전달.

        취소는 예외가 아니라 CANCELLED 상태로 반환한다.
        SearchError / StoreNotOpenError 는 그대로 전파.
        """
        cancel = cancel or CancelToken()
        delivered = 0
        total = 0
        is_limited = False

        try:
            result = self._executor.execute(self._store, request, cancel, self._limit)
            total = len(result.items)
            is_limited = result.is_limited

            for start in range(0, total, self._batch_size):
                cancel.raise_if_cancelled()
                batch = result.items[start : start + self._batch_size]
                if self._attacher is not None:
                    self._attacher.attach(batch, cancel)
                cancel.raise_if_cancelled()

                if on_batch is not None:
                    on_batch(batch)
                delivered += len(batch)
                logger.debug("Loaded %d of %d items", delivered, total)

            outcome = SearchOutcome(
                status=SearchStatus.COMPLETED,
                delivered=delivered,
                total=total,
                is_limited=is_limited,
                limit=self._limit if is_limited else None,
            )
        except SearchCancelled:
            logger.debug("Search cancelled after %d items", delivered)
            outcome = SearchOutcome(
                status=SearchStatus.CANCELLED,
                delivered=delivered,
                total=total,
                is_limited=is_limited,
            )

        self._emit(outcome)
        return outcome

    # === 비동기 제출 (cancel-and-replace) ===

    def submit(
        self, request: SearchRequest, on_batch: Optional[BatchHandler] = None
    ) -> Future:
        """이전 검색을 취소하고 새 검색을 백그라운드 스레드에 예약.

        반환된 Future의 결과는 SearchOutcome.
        """
        with self._lock:
            if self._current_token is not None:
                self._current_token.cancel()
            token = CancelToken()
            future = self._worker.submit(self.run, request, on_batch, token)
            self._current_token = token
            self._current_future = future
        return future

    def search(
        self,
        text: str,
        categories: tuple[str, ...] | frozenset[str] = (),
        on_batch: Optional[BatchHandler] = None,
    ) -> Future:
        """입력창 텍스트로 검색 제출. 정수면 ID 검색."""
        return self.submit(SearchRequest.from_text(text, categories), on_batch)

    def cancel_all(self, wait_for_completion: bool = True) -> None:
        """진행 중인 검색 취소. 데이터셋 전환 전에는 완료까지 대기해야 한다."""
        with self._lock:
            token, future = self._current_token, self._current_future
            self._current_token = None
            self._current_future = None
        if token is not None:
            token.cancel()
        if future is not None and wait_for_completion:
            wait([future])

    def close(self) -> None:
        self.cancel_all(wait_for_completion=True)
        self._worker.shutdown(wait=True)

    def _emit(self, outcome: SearchOutcome) -> None:
        if self._bus is None:
            return
        self._bus.emit(
            CatalogEvent(
                event_type=EventTypes.SEARCH_FINISHED,
                data={
                    "status": outcome.status.value,
                    "delivered": outcome.delivered,
                    "total": outcome.total,
                    "is_limited": outcome.is_limited,
                },
                source="search_service",
            )
        )
