# community_app/api/posts/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from marshmallow import ValidationError

from community_app.api.communities.services import NotFoundError
from community_app.core.security import current_subject
from community_app.engine.toggle_store import ToggleFailedError
from .schemas import PostCreateSchema, PostUpdateSchema, PostResponseSchema

# url_prefix: /api/communities/<community_id>/posts
posts_bp = Blueprint('posts_bp', __name__)

@posts_bp.route('', methods=['GET'])
@jwt_required(optional=True)
def list_posts(community_id: str):
    """블로그 목록 (고정 글 우선, 최신순, 좋아요 여부 포함)"""
    post_service = current_app.services['posts']
    try:
        posts = post_service.list_posts(community_id, current_subject())
        return jsonify({"items": PostResponseSchema(many=True).dump(posts)}), 200
    except NotFoundError as e:
        return jsonify({"error_code": "COMMUNITY_NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"게시글 목록 조회 API 오류 (community: {community_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "ブログの取得に失敗しました"}), 500

@posts_bp.route('', methods=['POST'])
@jwt_required()
def create_post(community_id: str):
    """[관리자/작성자/대표자] 블로그 글 작성"""
    post_service = current_app.services['posts']
    try:
        data = PostCreateSchema().load(request.get_json())
        post = post_service.create_post(community_id, current_subject(), data)
        return jsonify(PostResponseSchema().dump(post)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error_code": "COMMUNITY_NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"게시글 작성 API 오류 (community: {community_id}): {e}", exc_info=True)
        return jsonify({"error_code": "CREATE_FAILED", "message": "投稿に失敗しました"}), 500

@posts_bp.route('/<string:post_id>', methods=['PATCH'])
@jwt_required()
def update_post(community_id: str, post_id: str):
    post_service = current_app.services['posts']
    try:
        data = PostUpdateSchema().load(request.get_json())
        post = post_service.update_post(community_id, post_id, current_subject(), data)
        return jsonify(PostResponseSchema().dump(post)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error_code": "NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"게시글 수정 API 오류 (post: {post_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "ブログ記事の更新に失敗しました"}), 500

@posts_bp.route('/<string:post_id>/pin', methods=['POST'])
@jwt_required()
def toggle_pin(community_id: str, post_id: str):
    """상단 고정 토글"""
    post_service = current_app.services['posts']
    try:
        post = post_service.toggle_pin(community_id, post_id, current_subject())
        return jsonify(PostResponseSchema().dump(post)), 200
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error_code": "NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"게시글 고정 API 오류 (post: {post_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "操作に失敗しました"}), 500

@posts_bp.route('/<string:post_id>', methods=['DELETE'])
@jwt_required()
def delete_post(community_id: str, post_id: str):
    post_service = current_app.services['posts']
    try:
        post_service.delete_post(community_id, post_id, current_subject())
        return jsonify({"message": "削除しました"}), 200
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error_code": "NOT_FOUND", "message": str(e)}), 404
    except Exception as e:
        logging.error(f"게시글 삭제 API 오류 (post: {post_id}): {e}", exc_info=True)
        return jsonify({"error_code": "DELETE_FAILED", "message": "削除に失敗しました"}), 500

@posts_bp.route('/<string:post_id>/like', methods=['POST'])
@jwt_required()
def toggle_like(community_id: str, post_id: str):
    """좋아요 토글. 실패 시 로컬 상태는 이미 롤백된 상태로 503을 반환합니다."""
    post_service = current_app.services['posts']
    try:
        is_liked, likes_count = post_service.toggle_like(community_id, post_id, current_subject())
        return jsonify({"post_id": post_id, "is_liked": is_liked, "likesCount": likes_count}), 200
    except NotFoundError as e:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": str(e)}), 404
    except ToggleFailedError:
        return jsonify({"error_code": "TOGGLE_FAILED", "message": "いいねの更新に失敗しました"}), 503
    except Exception as e:
        logging.error(f"좋아요 토글 API 오류 (post: {post_id}): {e}", exc_info=True)
        return jsonify({"error_code": "TOGGLE_FAILED", "message": "いいねの更新に失敗しました"}), 500
