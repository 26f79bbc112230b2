"""EventBus - 데이터셋/적재/검색 수명주기 알림

규칙:
- 서비스는 표현 계층을 직접 알지 못한다. 상태 변화는 이벤트로만 알린다
- 이벤트는 식별값(경로, 건수, 상태)만 전달한다. 레코드/이미지 금지
- 전파 깊이 최대 MAX_DEPTH 단계
- 검색 이벤트는 백그라운드 스레드에서 발행될 수 있다. 핸들러는 스레드 안전해야 한다
"""

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from src.core.logging import get_logger

logger = get_logger(__name__)

MAX_DEPTH = 5  # 한 발행 내 전파 최대 깊이


@dataclass
class CatalogEvent:
    """이벤트 데이터 컨테이너

    Args:
        event_type: 이벤트 유형 (예: "dataset_opened", "ingestion_completed")
        data: 이벤트 데이터 (식별값 위주)
        source: 발행한 서비스 이름
    """

    event_type: str
    data: Dict[str, Any]
    source: str

    _depth: int = field(default=0, repr=False)


EventHandler = Callable[[CatalogEvent], None]


class EventBus:
    """동기식 이벤트 버스

    사용 패턴:
        bus = EventBus()
        bus.subscribe("dataset_opened", on_dataset_opened)
        bus.emit(CatalogEvent(event_type="dataset_opened", data={"location": "..."}, source="dataset_service"))
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()
        self._local = threading.local()  # 스레드별 전파 깊이

    @property
    def _current_depth(self) -> int:
        return getattr(self._local, "depth", 0)

    @_current_depth.setter
    def _current_depth(self, value: int) -> None:
        self._local.depth = value

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """이벤트 구독 등록"""
        with self._lock:
            self._handlers[event_type].append(handler)
        logger.debug(f"EventBus subscribe: {event_type} -> {handler.__qualname__}")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        """이벤트 구독 해제"""
        with self._lock:
            try:
                self._handlers[event_type].remove(handler)
            except ValueError:
                logger.warning(
                    f"EventBus handler not registered: {event_type} -> {handler.__qualname__}"
                )

    def emit(self, event: CatalogEvent) -> None:
        """이벤트 발행. 등록된 핸들러를 동기 호출.

        핸들러 예외는 로그만 남기고 다음 핸들러로 넘어간다.
        """
        if self._current_depth >= MAX_DEPTH:
            logger.warning(
                f"EventBus depth exceeded ({MAX_DEPTH}): "
                f"{event.source}:{event.event_type} ignored"
            )
            return

        event._depth = self._current_depth
        with self._lock:
            handlers = list(self._handlers.get(event.event_type, []))
        if not handlers:
            logger.debug(f"EventBus: no subscribers for {event.event_type}")
            return

        self._current_depth += 1
        try:
            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        f"EventBus handler error: {handler.__qualname__} "
                        f"(event={event.event_type})"
                    )
        finally:
            self._current_depth -= 1

    def clear(self) -> None:
        """모든 구독 해제 (테스트용)"""
        with self._lock:
            self._handlers.clear()

    @property
    def handler_count(self) -> int:
        """등록된 총 핸들러 수"""
        with self._lock:
            return sum(len(h) for h in self._handlers.values())
