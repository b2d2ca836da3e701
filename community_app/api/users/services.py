# community_app/api/users/services.py
import logging
from typing import List, Optional

from community_app.models.user import User
from community_app.services.firestore_service import USERS, DocumentStore, user_path

# username 전방 일치 검색용 상한 문자 (Firestore 관례)
PREFIX_SENTINEL = '\uf8ff'

class UserService:
    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store

    def init_app(self, app, store: DocumentStore):
        self.store = store

    def get_user(self, uid: str) -> Optional[User]:
        data = self.store.get(user_path(uid))
        return User.from_document(uid, data) if data is not None else None

    def is_admin(self, uid: Optional[str]) -> bool:
        if not uid:
            return False
        try:
            user = self.get_user(uid)
        except Exception as e:
            logging.error(f"관리자 여부 조회 실패 (uid: {uid}): {e}", exc_info=True)
            raise
        return bool(user and user.admin)

    def search_users(self, term: str, limit: int = 10) -> List[User]:
        """
        대표자 후보 검색. '@'가 들어 있으면 email 완전 일치, 아니면 username 전방 일치.
        """
        term = (term or '').strip()
        if not term:
            return []

        if '@' in term:
            docs = self.store.query(USERS, predicates=[('email', '==', term.lower())], limit=limit)
        else:
            docs = self.store.query(
                USERS,
                predicates=[('username', '>=', term), ('username', '<=', term + PREFIX_SENTINEL)],
                order_by=[('username', 'asc')],
                limit=limit,
            )
        return [User.from_document(doc.id, doc.data) for doc in docs]
