# community_app/engine/tags.py
"""
태그 정규화 기반 중복 제거와 자동완성.

태그는 처음 쓰일 때 만들어지고 삭제되지 않습니다. 같은 정규화 값을 가진 태그가 이미 있으면
새로 만들지 않고 기존 태그를 돌려줍니다.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from community_app.engine.normalizer import normalize
from community_app.services.firestore_service import TAGS, DocumentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tag:
    id: str
    name: str
    normalized_names: tuple = field(default_factory=tuple)

    @classmethod
    def from_document(cls, doc_id: str, data: dict) -> 'Tag':
        name = str(data.get('name') or '')
        names = data.get('normalizedNames') or [normalize(name)]
        return cls(id=doc_id, name=name, normalized_names=tuple(names))

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name, 'normalizedNames': list(self.normalized_names)}


def load_tags(store: DocumentStore) -> List[Tag]:
    return [Tag.from_document(doc.id, doc.data) for doc in store.query(TAGS)]


def find_matching_tag(normalized: str, existing: Iterable[Tag]) -> Optional[Tag]:
    for tag in existing:
        if normalized in tag.normalized_names:
            return tag
    return None


def resolve_or_create_tag(raw_input: str, existing: Iterable[Tag], store: DocumentStore) -> Tag:
    """
    정규화한 값이 기존 태그의 normalizedNames에 있으면 그 태그를 반환하고(쓰기 없음),
    없으면 새 태그 문서를 만들어 반환합니다.

    Raises:
        ValueError: 공백뿐인 입력
    """
    normalized = normalize(raw_input or '')
    if not normalized:
        raise ValueError("태그 이름이 비어 있습니다.")

    matched = find_matching_tag(normalized, existing)
    if matched is not None:
        return matched

    name = raw_input.strip()
    tag_id = store.add(TAGS, {
        'name': name,
        'normalizedNames': [normalized],
        'createdAt': store.server_timestamp(),
    })
    logger.info(f"새 태그 생성: {name} ({tag_id})")
    return Tag(id=tag_id, name=name, normalized_names=(normalized,))


def suggest_tags(prefix: str, tags: Iterable[Tag], limit: int = 10) -> List[Tag]:
    """정규화한 접두어로 시작하는 태그 목록. 접두어가 비어 있으면 빈 목록."""
    needle = normalize(prefix or '')
    if not needle:
        return []
    matched = [tag for tag in tags if any(n.startswith(needle) for n in tag.normalized_names)]
    matched.sort(key=lambda t: (len(t.name), t.name))
    return matched[:limit]
