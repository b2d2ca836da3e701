# community_app/engine/watches.py
import logging
import threading
from typing import Callable, Dict, Hashable, Iterable, Optional, Set

from community_app.services.firestore_service import DocumentStore

logger = logging.getLogger(__name__)


class WatchCoordinator:
    """
    화면에 보이는 키 집합을 기준으로 문서 감시(watch)를 관리합니다.

    update_visible()에 새 키 집합을 넘기면 이전 집합과 비교해서 빠진 키의 감시는 해제하고
    새로 들어온 키만 감시를 엽니다. 해제된 감시나 close() 이후에 도착한 알림은 버립니다
    (로그아웃한 사용자 상태가 다음 사용자에게 섞이지 않도록).
    """
    def __init__(self, store: DocumentStore, path_of: Callable[[Hashable], str],
                 on_change: Callable[[Hashable, bool], None]):
        self.store = store
        self.path_of = path_of
        self.on_change = on_change
        # 키별 구독 토큰. 알림은 자신의 토큰이 아직 현재 토큰일 때만 반영됩니다.
        self._tokens: Dict[Hashable, object] = {}
        self._unsubscribers: Dict[Hashable, Callable[[], None]] = {}
        self._lock = threading.Lock()
        self._closed = False

    @property
    def visible(self) -> Set[Hashable]:
        with self._lock:
            return set(self._tokens)

    @property
    def closed(self) -> bool:
        return self._closed

    def update_visible(self, keys: Iterable[Hashable]) -> None:
        wanted = set(keys)
        with self._lock:
            if self._closed:
                return
            stale = [key for key in self._tokens if key not in wanted]
            added = [key for key in wanted if key not in self._tokens]
            to_close = []
            for key in stale:
                del self._tokens[key]
                to_close.append(self._unsubscribers.pop(key, None))
            new_tokens = {key: object() for key in added}
            self._tokens.update(new_tokens)

        for unsubscribe in to_close:
            if unsubscribe is not None:
                unsubscribe()

        for key in added:
            token = new_tokens[key]
            unsubscribe = self.store.subscribe(self.path_of(key), self._callback_for(key, token))
            with self._lock:
                if self._tokens.get(key) is token:
                    self._unsubscribers[key] = unsubscribe
                    continue
            # 감시를 여는 사이에 close() 되었거나 화면에서 빠졌음
            unsubscribe()

        if stale or added:
            logger.info(f"감시 갱신: +{len(added)} / -{len(stale)} (현재 {len(wanted)}개)")

    def _callback_for(self, key: Hashable, token: object) -> Callable[[Optional[dict]], None]:
        def _notify(data: Optional[dict]) -> None:
            with self._lock:
                current = not self._closed and self._tokens.get(key) is token
            if current:
                self.on_change(key, data is not None)
        return _notify

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._tokens.clear()
            unsubscribers = list(self._unsubscribers.values())
            self._unsubscribers.clear()
        for unsubscribe in unsubscribers:
            unsubscribe()
        if unsubscribers:
            logger.info(f"감시 {len(unsubscribers)}개 해제")
