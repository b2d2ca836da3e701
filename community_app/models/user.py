# community_app/models/user.py
from dataclasses import dataclass
from typing import Any, Dict, Optional

@dataclass
class User:
    """
    Firestore 'users' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    문서 ID는 Firebase Authentication의 uid 입니다.
    """
    uid: str
    email: str
    username: str
    photo_url: Optional[str] = None
    role: Optional[str] = None
    is_admin: bool = False

    @property
    def admin(self) -> bool:
        # 두 방식 모두 허용 (role == 'admin' 또는 isAdmin 플래그)
        return self.role == 'admin' or self.is_admin is True

    @classmethod
    def from_document(cls, uid: str, data: Dict[str, Any]) -> 'User':
        return cls(
            uid=uid,
            email=data.get('email') or '',
            username=data.get('username') or '（未設定）',
            photo_url=data.get('photoURL'),
            role=data.get('role'),
            is_admin=data.get('isAdmin') is True,
        )

    def public_dict(self) -> Dict[str, Any]:
        return {'uid': self.uid, 'username': self.username, 'email': self.email, 'photoURL': self.photo_url}
