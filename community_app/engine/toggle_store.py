# community_app/engine/toggle_store.py
"""
좋아요/즐겨찾기에 공통으로 쓰이는 낙관적 토글(optimistic toggle) 모듈.

멤버십은 '문서가 존재하는가'로만 표현됩니다.
    좋아요:    communities/{cid}/posts/{pid}/likes/{uid}
    즐겨찾기:  users/{uid}/favorites/{cid}

토글 순서:
1. 로컬 상태 읽기 (모르면 조회해서 채움)
2. 로컬 상태를 즉시 반전하고 리스너에게 알림
3. 원격 생성/삭제 (카운터가 있으면 CounterTransaction으로 묶어서)
4. 실패하면 로컬 상태를 원래대로 되돌린 뒤 ToggleFailedError 발생 (재시도 없음)
"""
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from community_app.engine.counter_transaction import CounterTransaction
from community_app.engine.watches import WatchCoordinator
from community_app.models.subject import Subject
from community_app.services.firestore_service import DocumentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MembershipKey:
    """(상위 문서 경로, 멤버십 컬렉션, 멤버 ID)로 식별되는 멤버십 문서"""
    owner_path: str
    collection: str
    member_id: str

    @property
    def path(self) -> str:
        return f"{self.owner_path}/{self.collection}/{self.member_id}"


class ToggleFailedError(RuntimeError):
    """원격 반영에 실패한 토글. 발생 시점에는 이미 로컬 상태가 롤백되어 있습니다."""
    def __init__(self, key: MembershipKey, target: bool):
        super().__init__(f"토글 반영 실패: {key.path} -> {'생성' if target else '삭제'}")
        self.key = key
        self.target = target


# (key, is_member, source) 를 받는 리스너. source: seed / optimistic / confirmed / rollback / remote
Listener = Callable[[MembershipKey, bool, str], None]


class ToggleStore:
    """
    한 주체(Subject)의 멤버십 상태를 메모리에 들고 낙관적으로 토글합니다.

    - 같은 키에 대한 두 번째 토글은 첫 번째가 끝날 때까지 기다렸다가 확정된 상태를 기준으로
      다시 반전합니다 (키별 in-flight 가드).
    - 서로 다른 키의 토글은 독립적으로 진행됩니다.
    - 감시 알림은 낙관적 값보다 우선하며, 마지막으로 도착한 알림이 최종 상태입니다.
    """
    def __init__(self, store: DocumentStore, subject: Subject,
                 payload_factory: Optional[Callable[[MembershipKey], Dict[str, Any]]] = None,
                 merge: bool = False):
        self.store = store
        self.subject = subject
        self.payload_factory = payload_factory
        self.merge = merge
        self._states: Dict[MembershipKey, bool] = {}
        self._state_lock = threading.Lock()
        self._key_locks: Dict[MembershipKey, threading.Lock] = {}
        self._listeners: List[Listener] = []
        self.watches = WatchCoordinator(store, lambda key: key.path, self._on_remote_change)

    # --- 상태 조회 ---
    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def cached(self, key: MembershipKey) -> Optional[bool]:
        """로컬에 알려진 상태. 한 번도 조회하지 않았으면 None."""
        with self._state_lock:
            return self._states.get(key)

    def is_member(self, key: MembershipKey) -> bool:
        """단건 조회. 문서 존재 여부로 멤버십을 판정하고 로컬 상태를 채웁니다."""
        if not self.subject.is_authenticated:
            return False
        exists = self.store.get(key.path) is not None
        self._set_state(key, exists, 'seed')
        return exists

    def state(self, key: MembershipKey) -> bool:
        """로컬 상태가 있으면 그대로, 없으면 조회해서 반환합니다."""
        cached = self.cached(key)
        return cached if cached is not None else self.is_member(key)

    # --- 토글 ---
    def toggle(self, key: MembershipKey, counter: Optional[CounterTransaction] = None) -> bool:
        """멤버십을 반전하고 확정된 상태를 반환합니다. 실패 시 롤백 후 ToggleFailedError."""
        if not self.subject.is_authenticated:
            # 실패할 것이 뻔한 요청은 보내지 않습니다.
            logger.info(f"비로그인 상태의 토글 요청 무시: {key.path}")
            return bool(self.cached(key))

        with self._key_lock(key):
            previous = self.state(key)
            target = not previous
            self._set_state(key, target, 'optimistic')

            try:
                confirmed = self._apply_remote(key, target, counter)
            except Exception as e:
                # 롤백이 에러 전파보다 먼저입니다.
                self._set_state(key, previous, 'rollback')
                logger.error(f"토글 실패로 롤백 ({key.path}): {e}", exc_info=True)
                raise ToggleFailedError(key, target) from e

            self._set_state(key, confirmed, 'confirmed')
            return confirmed

    def _apply_remote(self, key: MembershipKey, target: bool, counter: Optional[CounterTransaction]) -> bool:
        payload = self.payload_factory(key) if self.payload_factory else {}
        if counter is not None:
            result = counter.adjust(
                delta=1 if target else -1,
                membership_path=key.path,
                create=target,
                payload=payload,
            )
            return result.is_member

        if target:
            fields = dict(payload)
            fields['createdAt'] = self.store.server_timestamp()
            self.store.set(key.path, fields, merge=self.merge)
        else:
            self.store.delete(key.path)
        return target

    # --- 실시간 감시 ---
    def watch(self, keys: Iterable[MembershipKey]) -> None:
        """보이는 키 집합을 갱신합니다. 로그인하지 않았으면 감시를 열지 않습니다."""
        if not self.subject.is_authenticated:
            return
        self.watches.update_visible(keys)

    def _on_remote_change(self, key: MembershipKey, exists: bool) -> None:
        self._set_state(key, exists, 'remote')

    def close(self) -> None:
        """주체가 바뀌거나 로그아웃할 때 호출. 모든 감시를 해제하고 로컬 상태와 키별 락을 비웁니다."""
        self.watches.close()
        with self._state_lock:
            self._states.clear()
            self._key_locks.clear()

    # --- 내부 ---
    def _key_lock(self, key: MembershipKey) -> threading.Lock:
        with self._state_lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock

    def _set_state(self, key: MembershipKey, value: bool, source: str) -> None:
        with self._state_lock:
            self._states[key] = value
        for listener in self._listeners:
            listener(key, value, source)
