# community_app/services/identity_service.py
import logging
from dataclasses import dataclass
from typing import Optional

from firebase_admin import auth as firebase_auth

from community_app.models.subject import Subject


class DomainNotAllowedError(PermissionError):
    """허용되지 않은 메일 도메인으로 로그인 시도"""

class EmailNotVerifiedError(PermissionError):
    """메일 인증이 끝나지 않은 계정"""


@dataclass
class VerifiedIdentity:
    uid: str
    email: str
    email_verified: bool
    name: Optional[str] = None
    picture: Optional[str] = None

    @property
    def subject(self) -> Subject:
        return Subject(uid=self.uid, verified=self.email_verified)


class IdentityService:
    """
    Firebase Authentication이 발급한 ID 토큰을 검증하고 주체(Subject)를 만듭니다.
    가입/로그인 화면 자체는 클라이언트(Firebase SDK)의 몫이며, 여기서는 결과 토큰만 확인합니다.
    """
    def __init__(self, allowed_domain: str = '@u.tsukuba.ac.jp'):
        self.allowed_domain = allowed_domain

    def init_app(self, app):
        self.allowed_domain = app.config.get('ALLOWED_EMAIL_DOMAIN', self.allowed_domain)

    def decode(self, id_token: str) -> dict:
        return firebase_auth.verify_id_token(id_token)

    def verify(self, id_token: str, require_verified: bool = True) -> VerifiedIdentity:
        """
        ID 토큰 검증 -> 도메인 확인 -> (옵션) 메일 인증 확인.

        Raises:
            ValueError: 토큰이 유효하지 않음
            DomainNotAllowedError, EmailNotVerifiedError
        """
        try:
            claims = self.decode(id_token)
        except (firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError,
                firebase_auth.RevokedIdTokenError) as e:
            logging.warning(f"ID 토큰 검증 실패: {e}")
            raise ValueError("유효하지 않은 ID 토큰입니다.") from e

        email = (claims.get('email') or '').lower()
        if not email.endswith(self.allowed_domain):
            raise DomainNotAllowedError(f"{self.allowed_domain} のメールアドレスのみ利用できます。")

        identity = VerifiedIdentity(
            uid=claims['uid'] if 'uid' in claims else claims['sub'],
            email=email,
            email_verified=bool(claims.get('email_verified', False)),
            name=claims.get('name'),
            picture=claims.get('picture'),
        )
        if require_verified and not identity.email_verified:
            raise EmailNotVerifiedError("メール認証が完了していません。")
        return identity
