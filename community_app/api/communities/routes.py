# community_app/api/communities/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from marshmallow import ValidationError

from community_app.core.security import current_subject, verified_required
from community_app.engine.toggle_store import ToggleFailedError
from .schemas import CommunityListQuerySchema, CommunityFormSchema, OwnerAssignSchema
from .services import NotFoundError, summary_response

communities_bp = Blueprint('communities_bp', __name__)

@communities_bp.route('', methods=['GET'])
@jwt_required(optional=True)
def list_communities():
    """커뮤니티 목록 (검색/상태/즐겨찾기 필터, 정렬, 페이지네이션)"""
    community_service = current_app.services['communities']
    try:
        args = CommunityListQuerySchema().load(request.args.to_dict())
        page = community_service.list_communities(current_subject(), args)
        return jsonify({
            "items": [summary_response(c) for c in page.items],
            "pagination": page.meta()
        }), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"커뮤니티 목록 조회 API 오류: {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "一覧の取得に失敗しました"}), 500

@communities_bp.route('', methods=['POST'])
@verified_required
def create_community():
    """커뮤니티 생성 (메일 인증 완료 사용자만)"""
    community_service = current_app.services['communities']
    try:
        form = CommunityFormSchema().load(request.get_json())
        community = community_service.create_community(current_subject(), form)
        return jsonify(community), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValueError as e:
        return jsonify({"error_code": "INVALID_FORM", "message": str(e)}), 400
    except Exception as e:
        logging.error(f"커뮤니티 생성 API 오류: {e}", exc_info=True)
        return jsonify({"error_code": "CREATE_FAILED", "message": "作成に失敗しました"}), 500

@communities_bp.route('/<string:community_id>', methods=['GET'])
@jwt_required(optional=True)
def get_community(community_id: str):
    community_service = current_app.services['communities']
    try:
        return jsonify(community_service.get_community(community_id, current_subject())), 200
    except ValueError as e:
        return jsonify({"error_code": "COMMUNITY_NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"커뮤니티 상세 조회 API 오류 (id: {community_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "コミュニティの取得に失敗しました"}), 500

@communities_bp.route('/<string:community_id>', methods=['PATCH'])
@jwt_required()
def update_community(community_id: str):
    """[관리자/작성자/대표자] 커뮤니티 정보 수정"""
    community_service = current_app.services['communities']
    try:
        form = CommunityFormSchema(partial=True).load(request.get_json())
        updated = community_service.update_community(community_id, current_subject(), form)
        return jsonify(updated), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error_code": "COMMUNITY_NOT_FOUND", "message": str(e)}), 404
    except ValueError as e:
        return jsonify({"error_code": "INVALID_FORM", "message": str(e)}), 400
    except Exception as e:
        logging.error(f"커뮤니티 수정 API 오류 (id: {community_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "更新に失敗しました"}), 500

@communities_bp.route('/<string:community_id>', methods=['DELETE'])
@jwt_required()
def delete_community(community_id: str):
    """[관리자/작성자/대표자] 커뮤니티와 하위 게시글 삭제"""
    community_service = current_app.services['communities']
    try:
        deleted_posts = community_service.delete_community(community_id, current_subject())
        return jsonify({"message": "削除しました", "deleted_posts": deleted_posts}), 200
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except ValueError as e:
        return jsonify({"error_code": "COMMUNITY_NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"커뮤니티 삭제 API 오류 (id: {community_id}): {e}", exc_info=True)
        return jsonify({"error_code": "DELETE_FAILED", "message": "削除に失敗しました"}), 500

@communities_bp.route('/<string:community_id>/owner', methods=['PUT'])
@jwt_required()
def assign_owner(community_id: str):
    """[관리자/작성자/대표자] 대표자 변경"""
    community_service = current_app.services['communities']
    try:
        data = OwnerAssignSchema().load(request.get_json())
        updated = community_service.assign_owner(community_id, current_subject(), data['owner_id'])
        return jsonify(updated), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except ValueError as e:
        return jsonify({"error_code": "NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"대표자 변경 API 오류 (id: {community_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "代表者変更に失敗しました"}), 500

@communities_bp.route('/<string:community_id>/favorite', methods=['POST'])
@jwt_required()
def toggle_favorite(community_id: str):
    """즐겨찾기 토글. 실패하면 상태는 이미 원래대로 되돌려진 뒤입니다."""
    community_service = current_app.services['communities']
    try:
        is_favorite = community_service.toggle_favorite(community_id, current_subject())
        return jsonify({"community_id": community_id, "is_favorite": is_favorite}), 200
    except ValueError as e:
        return jsonify({"error_code": "COMMUNITY_NOT_FOUND", "message": str(e)}), 404
    except ToggleFailedError:
        return jsonify({"error_code": "TOGGLE_FAILED", "message": "お気に入りの更新に失敗しました"}), 503
    except Exception as e:
        logging.error(f"즐겨찾기 토글 API 오류 (id: {community_id}): {e}", exc_info=True)
        return jsonify({"error_code": "TOGGLE_FAILED", "message": "お気に入りの更新に失敗しました"}), 500
