# community_app/api/tags/services.py
import logging
import threading
from typing import List, Optional

from community_app.engine.tags import Tag, load_tags, resolve_or_create_tag, suggest_tags
from community_app.services.firestore_service import DocumentStore


class TagService:
    def __init__(self, store: Optional[DocumentStore] = None, suggestion_limit: int = 10):
        self.store = store
        self.suggestion_limit = suggestion_limit
        # 이 프로세스 안에서의 동시 생성만 직렬화합니다 (여러 인스턴스 간 경쟁은 막지 못함).
        self._create_lock = threading.Lock()

    def init_app(self, app, store: DocumentStore):
        self.store = store
        self.suggestion_limit = app.config.get('TAG_SUGGESTION_LIMIT', self.suggestion_limit)

    def suggest(self, prefix: str) -> List[Tag]:
        return suggest_tags(prefix, load_tags(self.store), self.suggestion_limit)

    def resolve(self, raw_input: str) -> Tag:
        with self._create_lock:
            existing = load_tags(self.store)
            tag = resolve_or_create_tag(raw_input, existing, self.store)
        logging.info(f"태그 확정: {tag.name} ({tag.id})")
        return tag
