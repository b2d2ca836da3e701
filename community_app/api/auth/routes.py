# community_app/api/auth/routes.py

import logging
import jwt
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity,
    get_jwt
)
from marshmallow import ValidationError

from community_app.api.auth.schemas import SessionRequestSchema, LogoutRequestSchema
from community_app.core.security import VERIFIED_CLAIM
from community_app.services.identity_service import DomainNotAllowedError, EmailNotVerifiedError

auth_bp = Blueprint('auth_bp', __name__)

@auth_bp.route('/session', methods=['POST'])
def create_session():
    """Firebase ID 토큰을 검증하고 API용 JWT를 발급합니다 (대학 메일 + 메일 인증 필수)."""
    identity_service = current_app.services['identity']
    auth_service = current_app.services['auth']
    try:
        validated_data = SessionRequestSchema().load(request.get_json())
        identity = identity_service.verify(validated_data['id_token'])
        user, is_new_user = auth_service.get_or_create_user(identity, validated_data.get('username'))

        claims = {VERIFIED_CLAIM: identity.email_verified}
        access_token = create_access_token(identity=user.uid, additional_claims=claims)
        refresh_token = create_refresh_token(identity=user.uid, additional_claims=claims)

        return jsonify({
            "access_token": access_token,
            "refresh_token": refresh_token,
            "is_new_user": is_new_user,
            "user_info": user.public_dict()
        }), 200
    except ValidationError as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": e.messages}), 400
    except DomainNotAllowedError as e:
        return jsonify({"error_code": "DOMAIN_NOT_ALLOWED", "message": str(e)}), 403
    except EmailNotVerifiedError as e:
        return jsonify({"error_code": "EMAIL_NOT_VERIFIED", "message": str(e)}), 403
    except ValueError as e:
        return jsonify({"error_code": "INVALID_ID_TOKEN", "message": str(e)}), 401
    except Exception as e:
        logging.error(f"로그인 처리 중 예외 발생: {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부 오류가 발생했습니다."}), 500


# --- 토큰 재발급 엔드포인트 ---
@auth_bp.route('/token/refresh', methods=['POST'])
@jwt_required(refresh=True) # Refresh Token만 허용하는 데코레이터
def refresh_token():
    """유효한 Refresh Token으로 새로운 Access Token을 발급합니다."""
    current_user_id = get_jwt_identity()
    claims = {VERIFIED_CLAIM: bool(get_jwt().get(VERIFIED_CLAIM, False))}
    new_access_token = create_access_token(identity=current_user_id, additional_claims=claims)
    return jsonify(access_token=new_access_token), 200


# --- 로그아웃 엔드포인트 ---
@auth_bp.route('/logout', methods=['POST'])
def logout():
    """로그아웃. 토큰을 무효화 목록에 추가하고 해당 사용자의 실시간 감시를 모두 해제합니다."""
    try:
        data = LogoutRequestSchema().load(request.get_json())

        # 만료된 토큰도 로그아웃할 수 있도록 만료 검사 없이 직접 해독합니다.
        secret_key = current_app.config['JWT_SECRET_KEY']
        algorithm = current_app.config.get('JWT_ALGORITHM', 'HS256')
        decoded_access = jwt.decode(data['access_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})
        decoded_refresh = jwt.decode(data['refresh_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})

        current_app.services['auth'].logout_user(
            decoded_access['jti'], decoded_access['exp'],
            decoded_refresh['jti'], decoded_refresh['exp']
        )
        current_app.services['sessions'].end(decoded_access.get('sub'))

        return jsonify({"message": "로그아웃 되었습니다."}), 200

    except ValidationError as e:
         return jsonify({"error_code": "VALIDATION_ERROR", "details": e.messages}), 400
    except jwt.PyJWTError as e:
        logging.error(f"JWT 해독 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "INVALID_TOKEN", "message": "유효하지 않은 토큰입니다."}), 422
    except Exception as e:
        logging.error(f"로그아웃 처리 중 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "LOGOUT_FAILED", "message": "로그아웃 처리 중 오류가 발생했습니다."}), 500
