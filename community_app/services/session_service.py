# community_app/services/session_service.py
"""
주체(uid)별 상호작용 세션 레지스트리.

세션 하나가 그 사용자의 좋아요/즐겨찾기 ToggleStore(로컬 상태 + 열린 감시)를 들고 있습니다.
로그아웃하거나 다른 주체로 바뀌거나 오래 쓰이지 않으면 세션을 닫아 모든 감시를 해제합니다.
"""
import logging
import threading
import time
from datetime import timedelta
from typing import Callable, Dict, List, Optional

from community_app.engine.toggle_store import MembershipKey, ToggleStore
from community_app.models.subject import Subject
from community_app.services.firestore_service import (
    FAVORITES, LIKES, DocumentStore, post_path, user_path
)


def like_key(community_id: str, post_id: str, uid: str) -> MembershipKey:
    return MembershipKey(post_path(community_id, post_id), LIKES, uid)

def favorite_key(uid: str, community_id: str) -> MembershipKey:
    return MembershipKey(user_path(uid), FAVORITES, community_id)


class SubjectSession:
    def __init__(self, store: DocumentStore, subject: Subject):
        self.subject = subject
        # SessionRegistry.clock 기준 마지막 사용 시각
        self.last_used = 0.0
        self.likes = ToggleStore(store, subject)
        # 즐겨찾기 문서에는 communityId도 함께 저장합니다.
        self.favorites = ToggleStore(
            store, subject,
            payload_factory=lambda key: {'communityId': key.member_id},
            merge=True,
        )

    def close(self) -> None:
        self.likes.close()
        self.favorites.close()


class SessionRegistry:
    """
    uid -> SubjectSession.

    로그아웃 없이 떠난 사용자의 감시가 계속 열려 있지 않도록, 마지막 사용 후
    idle_timeout이 지난 세션은 다음 요청 때 닫습니다.
    """
    def __init__(self, store: Optional[DocumentStore] = None,
                 idle_timeout: timedelta = timedelta(hours=1),
                 clock: Callable[[], float] = time.monotonic):
        self.store = store
        self.idle_timeout = idle_timeout
        self.clock = clock
        self._sessions: Dict[str, SubjectSession] = {}
        self._lock = threading.Lock()

    def init_app(self, app, store: DocumentStore):
        self.store = store
        self.idle_timeout = app.config.get('SESSION_IDLE_TIMEOUT', self.idle_timeout)
        app.before_request(self._sweep)

    def _sweep(self) -> None:
        # before_request 훅은 None을 반환해야 요청이 계속 진행됩니다.
        self.evict_idle()

    def evict_idle(self, now: Optional[float] = None) -> List[str]:
        """마지막 사용 후 idle_timeout이 지난 세션을 닫고, 닫은 uid 목록을 반환합니다."""
        now = self.clock() if now is None else now
        limit = self.idle_timeout.total_seconds()
        with self._lock:
            idle = [uid for uid, s in self._sessions.items() if now - s.last_used > limit]
            evicted = [self._sessions.pop(uid) for uid in idle]
        for session in evicted:
            session.close()
            logging.info(f"유휴 세션 종료 및 감시 해제 (uid: {session.subject.uid})")
        return idle

    def session_for(self, subject: Subject) -> SubjectSession:
        """
        uid에 해당하는 세션을 반환합니다. 같은 uid라도 인증 상태(verified)가 바뀌었으면
        이전 세션을 닫고 새로 만듭니다.
        """
        if not subject.is_authenticated:
            # 비로그인 주체에는 저장하지 않는 일회용 세션 (토글은 모두 no-op)
            return SubjectSession(self.store, subject)

        now = self.clock()
        self.evict_idle(now)
        stale = None
        with self._lock:
            session = self._sessions.get(subject.uid)
            if session is not None and session.subject != subject:
                stale = session
                session = None
            if session is None:
                session = self._sessions[subject.uid] = SubjectSession(self.store, subject)
            session.last_used = now
        if stale is not None:
            stale.close()
            logging.info(f"주체 변경으로 이전 세션 종료 (uid: {subject.uid})")
        return session

    def end(self, uid: Optional[str]) -> bool:
        """로그아웃 시 호출. 해당 uid의 감시를 모두 해제하고 로컬 상태를 버립니다."""
        if not uid:
            return False
        with self._lock:
            session = self._sessions.pop(uid, None)
        if session is None:
            return False
        session.close()
        logging.info(f"세션 종료 및 감시 해제 완료 (uid: {uid})")
        return True

    def active_uids(self):
        with self._lock:
            return set(self._sessions)

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()
