# community_app/api/users/schemas.py
from marshmallow import Schema, fields, validate

class UserSearchQuerySchema(Schema):
    """GET /api/users/search 쿼리 파라미터"""
    q = fields.Str(required=True, validate=validate.Length(min=1, max=100))

class UserPublicSchema(Schema):
    """대표자 후보 검색 결과 한 건"""
    uid = fields.Str(required=True)
    username = fields.Str(required=True)
    email = fields.Str(required=True)
    photoURL = fields.Str(allow_none=True)
