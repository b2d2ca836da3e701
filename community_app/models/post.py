# community_app/models/post.py
from dataclasses import dataclass
from typing import Any, Dict

@dataclass
class Post:
    """
    'communities/{cid}/posts' 하위 컬렉션의 문서 구조.
    likesCount는 likes 하위 컬렉션 문서 수의 비정규화 값이며 CounterTransaction으로만 바뀝니다.
    """
    title: str
    body: str
    image_url: str = ''
    is_pinned: bool = False
    timeline: bool = False
    likes_count: int = 0

    def to_firestore(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'body': self.body,
            'imageUrl': self.image_url,
            'isPinned': self.is_pinned,
            'timeline': self.timeline,
            'likesCount': self.likes_count,
        }
