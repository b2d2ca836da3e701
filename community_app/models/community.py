# community_app/models/community.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# 인원수 선택지 (자유 텍스트 라벨. 정렬 시에는 첫 숫자만 사용)
MEMBER_COUNT_OPTIONS = [
    "1~5人",
    "6~10人",
    "11~20人",
    "21~50人",
    "51人以上",
]

# official 상태값
UNOFFICIAL = 0
OFFICIAL = 1
PENDING = 2
OFFICIAL_STATES = (UNOFFICIAL, OFFICIAL, PENDING)


@dataclass
class LinkItem:
    """SNS / 참가 신청 링크 (label + url)"""
    label: str
    url: str


@dataclass
class Community:
    """
    Firestore 'communities' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    ID는 Firestore가 발급하므로 문서 필드에는 포함되지 않습니다.
    """
    name: str
    message: str = ''
    member_count: str = ''
    activity_description: str = ''
    activity_time: str = ''
    activity_location: str = ''
    join_description: str = ''
    contact: str = ''
    url: str = ''
    image_urls: List[str] = field(default_factory=list)
    thumbnail_url: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    sns_urls: List[LinkItem] = field(default_factory=list)
    join_urls: List[LinkItem] = field(default_factory=list)
    official: int = PENDING
    created_by: Optional[str] = None
    owner_id: Optional[str] = None

    def to_firestore(self) -> Dict[str, Any]:
        """원래 앱과 같은 camelCase 필드명으로 변환합니다."""
        return {
            'name': self.name,
            'message': self.message,
            'memberCount': self.member_count,
            'activityDescription': self.activity_description,
            'activityTime': self.activity_time,
            'activityLocation': self.activity_location,
            'joinDescription': self.join_description,
            'contact': self.contact,
            'url': self.url,
            'imageUrls': list(self.image_urls),
            'thumbnailUrl': self.thumbnail_url,
            'tags': list(self.tags),
            'snsUrls': [{'label': s.label, 'url': s.url} for s in self.sns_urls],
            'joinUrls': [{'label': j.label, 'url': j.url} for j in self.join_urls],
            'official': self.official,
            'createdBy': self.created_by,
            'ownerId': self.owner_id,
        }


def resolve_thumbnail(image_urls: List[str], thumbnail_url: Optional[str]) -> Optional[str]:
    """
    썸네일은 항상 imageUrls 중 하나여야 합니다.
    지정되지 않았거나 목록에서 빠진 경우 첫 번째 이미지로, 이미지가 없으면 None.
    """
    if thumbnail_url and thumbnail_url in image_urls:
        return thumbnail_url
    return image_urls[0] if image_urls else None


def clean_links(links: Optional[List[Dict[str, str]]]) -> List[Dict[str, str]]:
    """label과 url이 모두 빈 행은 버립니다 (폼의 빈 입력 줄)."""
    cleaned = []
    for link in links or []:
        label = (link.get('label') or '').strip()
        url = (link.get('url') or '').strip()
        if label or url:
            cleaned.append({'label': label, 'url': url})
    return cleaned
