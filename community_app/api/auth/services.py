# community_app/api/auth/services.py
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from community_app.models.user import User
from community_app.services.firestore_service import REVOKED_TOKENS, DocumentStore, user_path
from community_app.services.identity_service import VerifiedIdentity
from community_app.utils.datetime_utils import DateTimeUtils

class AuthService:
    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store

    def init_app(self, app, store: DocumentStore):
        """앱 초기화 과정에서 호출되어 문서 저장소를 연결합니다."""
        self.store = store

    def get_or_create_user(self, identity: VerifiedIdentity, username: Optional[str] = None) -> Tuple[User, bool]:
        """users/{uid} 문서를 조회하고, 없으면 새로 만듭니다."""
        data = self.store.get(user_path(identity.uid))
        if data is not None:
            return User.from_document(identity.uid, data), False

        user_data = {
            'email': identity.email,
            'username': username or identity.name or identity.email.split('@')[0],
            'photoURL': identity.picture,
            'createdAt': self.store.server_timestamp(),
        }
        self.store.set(user_path(identity.uid), user_data)
        logging.info(f"신규 사용자 문서 생성 (uid: {identity.uid})")
        return User.from_document(identity.uid, user_data), True

    # --- Blocklist 관련 로직 ---
    def add_token_to_blocklist(self, jti: str, expires: datetime):
        """전달받은 토큰의 jti를 만료 시간과 함께 저장합니다."""
        try:
            token_data = DateTimeUtils.for_firestore({
                'revoked_at': DateTimeUtils.now(),
                'expires_at': expires
            })
            self.store.set(f"{REVOKED_TOKENS}/{jti}", token_data)
        except Exception as e:
            logging.error(f"Blocklist 토큰 추가 실패 (jti: {jti}): {e}")
            raise

    def is_token_revoked(self, jwt_payload: dict) -> bool:
        """jti를 이용해 해당 토큰이 무효화 목록에 있는지 확인합니다."""
        jti = jwt_payload['jti']
        return self.store.get(f"{REVOKED_TOKENS}/{jti}") is not None

    def logout_user(self, access_jti: str, access_exp: int, refresh_jti: str, refresh_exp: int):
        """Access 토큰과 Refresh 토큰을 모두 Blocklist에 추가합니다."""
        access_expires = datetime.fromtimestamp(access_exp, tz=timezone.utc)
        refresh_expires = datetime.fromtimestamp(refresh_exp, tz=timezone.utc)
        self.add_token_to_blocklist(access_jti, access_expires)
        self.add_token_to_blocklist(refresh_jti, refresh_expires)
        logging.info(f"사용자 로그아웃 처리 완료. JTI: {access_jti[:8]}..., {refresh_jti[:8]}...")
