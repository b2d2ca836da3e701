# community_app/core/security.py
from functools import wraps
from flask import jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from community_app.models.subject import ANONYMOUS, Subject

VERIFIED_CLAIM = "verified"

def current_subject() -> Subject:
    """
    현재 요청의 JWT에서 주체를 만듭니다. 토큰이 없으면 비로그인 주체(ANONYMOUS)를 반환합니다.
    jwt_required() 또는 jwt_required(optional=True) 가 붙은 뷰 안에서만 호출해야 합니다.
    """
    uid = get_jwt_identity()
    if not uid:
        return ANONYMOUS
    return Subject(uid=uid, verified=bool(get_jwt().get(VERIFIED_CLAIM, False)))

def verified_required(f):
    """메일 인증이 끝난 사용자만 허용하는 데코레이터 (jwt_required 포함)"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        verify_jwt_in_request()
        if not get_jwt().get(VERIFIED_CLAIM, False):
            return jsonify({"error_code": "EMAIL_NOT_VERIFIED", "message": "メール認証が完了していません。"}), 403
        return f(*args, **kwargs)

    return decorated_function
