# community_app/api/posts/schemas.py
from marshmallow import Schema, fields, validate

class PostCreateSchema(Schema):
    """POST /api/communities/{id}/posts 요청 본문의 유효성을 검사합니다."""
    title = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    body = fields.Str(required=True, validate=validate.Length(min=1, max=10000))
    imageUrl = fields.Str(load_default='')
    timeline = fields.Bool(load_default=False)

class PostUpdateSchema(Schema):
    """PATCH /api/communities/{id}/posts/{post_id} 요청 본문 (부분 업데이트)."""
    title = fields.Str(validate=validate.Length(min=1, max=200))
    body = fields.Str(validate=validate.Length(min=1, max=10000))
    imageUrl = fields.Str()
    timeline = fields.Bool()

class PostResponseSchema(Schema):
    """게시글 응답 형식"""
    id = fields.Str(required=True)
    communityId = fields.Str(required=True)
    title = fields.Str(required=True)
    body = fields.Str(required=True)
    imageUrl = fields.Str(dump_default='')
    isPinned = fields.Bool(dump_default=False)
    timeline = fields.Bool(dump_default=False)
    likesCount = fields.Int(dump_default=0)
    createdAt = fields.Int(allow_none=True)
    is_liked = fields.Bool(dump_default=False)
