# community_app/api/communities/schemas.py
from marshmallow import Schema, fields, validate, validates, post_load, ValidationError

from community_app.engine.list_query import SortKey, SortOrder
from community_app.models.community import MEMBER_COUNT_OPTIONS, OFFICIAL_STATES

def _parse_csv(value):
    return [part.strip() for part in value.split(',') if part.strip()]


class CommunityListQuerySchema(Schema):
    """GET /api/communities 쿼리 파라미터"""
    q = fields.Str(load_default='')
    # '1' 또는 '0,2' 처럼 쉼표로 구분된 official 값. 생략하면 상태 필터 없음
    status = fields.Str(load_default=None)
    favorites_only = fields.Bool(load_default=False)
    sort = fields.Str(load_default=SortKey.CREATED_AT.value,
                      validate=validate.OneOf([k.value for k in SortKey]))
    order = fields.Str(load_default=SortOrder.DESC.value,
                       validate=validate.OneOf([o.value for o in SortOrder]))
    page = fields.Int(load_default=1, validate=validate.Range(min=1))
    # 클라이언트가 측정한 한 줄당 카드 수. 없으면 row_offsets로 계산
    items_per_row = fields.Int(load_default=None, validate=validate.Range(min=1))
    row_offsets = fields.Str(load_default=None)

    @validates('status')
    def validate_status(self, value, **kwargs):
        if value is None:
            return
        for part in _parse_csv(value):
            if not part.isdigit() or int(part) not in OFFICIAL_STATES:
                raise ValidationError(f"status는 0, 1, 2 중에서 지정해야 합니다: {part}")

    @validates('row_offsets')
    def validate_row_offsets(self, value, **kwargs):
        if value is None:
            return
        try:
            [float(part) for part in _parse_csv(value)]
        except ValueError:
            raise ValidationError("row_offsets는 숫자 목록이어야 합니다.")

    @post_load
    def to_criteria_args(self, data, **kwargs):
        status = data.get('status')
        data['status'] = None if status is None else frozenset(int(p) for p in _parse_csv(status))
        offsets = data.get('row_offsets')
        data['row_offsets'] = None if offsets is None else [float(p) for p in _parse_csv(offsets)]
        data['sort'] = SortKey(data['sort'])
        data['order'] = SortOrder(data['order'])
        return data


class LinkSchema(Schema):
    label = fields.Str(load_default='')
    url = fields.Str(load_default='')


class CommunityFormSchema(Schema):
    """
    POST /api/communities, PATCH /api/communities/{id} 요청 본문.
    필수 항목 검사는 기존 문서와 병합한 뒤 서비스에서 한 번 더 수행합니다.
    """
    name = fields.Str(validate=validate.Length(max=100))
    message = fields.Str(validate=validate.Length(max=200))
    memberCount = fields.Str(validate=validate.OneOf(MEMBER_COUNT_OPTIONS))
    activityDescription = fields.Str()
    activityTime = fields.Str()
    activityLocation = fields.Str()
    joinDescription = fields.Str()
    contact = fields.Str()
    url = fields.Str()
    imageUrls = fields.List(fields.Str())
    thumbnailUrl = fields.Str(allow_none=True)
    tags = fields.List(fields.Str(validate=validate.Length(min=1, max=50)))
    snsUrls = fields.List(fields.Nested(LinkSchema))
    joinUrls = fields.List(fields.Nested(LinkSchema))
    official = fields.Int(validate=validate.OneOf(OFFICIAL_STATES))


class OwnerAssignSchema(Schema):
    """PUT /api/communities/{id}/owner 요청 본문"""
    owner_id = fields.Str(required=True, validate=validate.Length(min=1))
