"""협조적 취소 신호 (검색 요청 1건당 1개)"""

import threading

from .errors import SearchCancelled


class CancelToken:
    """
    검색 요청 단위 취소 신호.
    강제 중단은 없다. 작업 단위 사이에서 호출자가 직접 확인한다.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise SearchCancelled()

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.cancelled})"
