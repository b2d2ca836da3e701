# community_app/models/subject.py
from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class Subject:
    """
    현재 요청의 인증 주체. 전역 상태 대신 엔진의 각 컴포넌트에 명시적으로 전달됩니다.
    uid가 없으면 비로그인 상태이며, 토글 같은 쓰기 작업은 모두 no-op이 됩니다.
    """
    uid: Optional[str] = None
    verified: bool = False

    @property
    def is_authenticated(self) -> bool:
        return bool(self.uid)

ANONYMOUS = Subject()
