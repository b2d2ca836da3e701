# community_app/api/timeline/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required
from marshmallow import Schema, fields, validate, ValidationError

from community_app.core.security import current_subject
from community_app.engine.list_query import TimelineOrder

timeline_bp = Blueprint('timeline_bp', __name__)

class TimelineQuerySchema(Schema):
    order = fields.Str(load_default=TimelineOrder.NEWEST.value,
                       validate=validate.OneOf([o.value for o in TimelineOrder]))
    favorites_only = fields.Bool(load_default=False)

@timeline_bp.route('', methods=['GET'])
@jwt_required(optional=True)
def get_timeline():
    """전체 커뮤니티 타임라인 (최신순 / 좋아요순, 즐겨찾기 커뮤니티만 보기)"""
    timeline_service = current_app.services['timeline']
    community_service = current_app.services['communities']
    try:
        args = TimelineQuerySchema().load(request.args.to_dict())
        subject = current_subject()
        favorites_only = args['favorites_only']
        favorite_ids = community_service.favorite_ids(subject) if favorites_only else frozenset()
        items = timeline_service.get_timeline(TimelineOrder(args['order']), favorites_only, favorite_ids)
        return jsonify({"items": items}), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"타임라인 조회 API 오류: {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "タイムラインの取得に失敗しました"}), 500
