#community_app/api/auth/schemas.py
from marshmallow import Schema, fields, validate

class SessionRequestSchema(Schema):
    """로그인 요청의 유효성을 검사하는 스키마"""
    id_token = fields.Str(
        required=True,
        validate=validate.Length(min=1),
        metadata={"description": "Firebase Authentication이 발급한 ID 토큰"}
    )
    username = fields.Str(
        load_default=None,
        validate=validate.Length(max=50),
        metadata={"description": "회원가입 시 입력한 사용자 이름 (최초 로그인 때만 저장)"}
    )

class LogoutRequestSchema(Schema):
    """로그아웃 요청의 유효성을 검사하는 스키마"""
    access_token = fields.Str(required=True)
    refresh_token = fields.Str(required=True)
