# community_app/api/tags/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from marshmallow import Schema, fields, validate, ValidationError

tags_bp = Blueprint('tags_bp', __name__)

class TagSuggestQuerySchema(Schema):
    q = fields.Str(load_default='')

class TagResolveSchema(Schema):
    """POST /api/tags 요청 본문"""
    name = fields.Str(required=True, validate=validate.Length(min=1, max=50))

@tags_bp.route('', methods=['GET'])
def suggest_tags():
    """태그 자동완성 (정규화한 접두어 일치)"""
    tag_service = current_app.services['tags']
    try:
        args = TagSuggestQuerySchema().load(request.args.to_dict())
        tags = tag_service.suggest(args['q'])
        return jsonify({"items": [tag.to_dict() for tag in tags]}), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"태그 자동완성 API 오류: {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "タグの取得に失敗しました"}), 500

@tags_bp.route('', methods=['POST'])
@jwt_required()
def resolve_tag():
    """정규화 기준으로 같은 태그가 있으면 그대로, 없으면 새로 만들어 반환합니다."""
    tag_service = current_app.services['tags']
    try:
        data = TagResolveSchema().load(request.get_json())
        tag = tag_service.resolve(data['name'])
        return jsonify(tag.to_dict()), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValueError as e:
        return jsonify({"error_code": "INVALID_TAG", "message": str(e)}), 400
    except Exception as e:
        logging.error(f"태그 생성 API 오류: {e}", exc_info=True)
        return jsonify({"error_code": "CREATE_FAILED", "message": "タグの作成に失敗しました"}), 500
