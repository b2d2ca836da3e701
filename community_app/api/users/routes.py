# community_app/api/users/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from marshmallow import ValidationError

from community_app.core.security import current_subject
from .schemas import UserSearchQuerySchema, UserPublicSchema

users_bp = Blueprint('users_bp', __name__)
me_bp = Blueprint('me_bp', __name__)

@users_bp.route('/search', methods=['GET'])
@jwt_required()
def search_users():
    """대표자(ownerId) 지정용 사용자 검색: email 완전 일치 또는 username 전방 일치, 최대 10건."""
    user_service = current_app.services['users']
    try:
        args = UserSearchQuerySchema().load(request.args.to_dict())
        users = user_service.search_users(args['q'], limit=10)
        return jsonify(UserPublicSchema(many=True).dump([u.public_dict() for u in users])), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"사용자 검색 API 오류: {e}", exc_info=True)
        return jsonify({"error_code": "SEARCH_FAILED", "message": "検索に失敗しました"}), 500


# --- 마이페이지 ---
@me_bp.route('/favorites', methods=['GET'])
@jwt_required()
def get_my_favorites():
    """내가 즐겨찾기한 커뮤니티 목록"""
    community_service = current_app.services['communities']
    try:
        items = community_service.list_favorites(current_subject())
        return jsonify({"items": items}), 200
    except Exception as e:
        logging.error(f"즐겨찾기 목록 조회 API 오류: {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "お気に入りの取得に失敗しました"}), 500

@me_bp.route('/communities', methods=['GET'])
@jwt_required()
def get_my_communities():
    """내가 만든 커뮤니티 목록"""
    community_service = current_app.services['communities']
    try:
        items = community_service.list_created_by(current_subject())
        return jsonify({"items": items}), 200
    except Exception as e:
        logging.error(f"내 커뮤니티 목록 조회 API 오류: {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "コミュニティの取得に失敗しました"}), 500
