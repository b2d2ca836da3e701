# community_app/engine/counter_transaction.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from community_app.services.firestore_service import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class AdjustResult:
    """트랜잭션 커밋 후의 확정 상태"""
    is_member: bool   # 커밋 이후 멤버십 문서 존재 여부
    applied: bool     # 실제로 쓰기가 일어났는지 (False = 이미 원하는 상태였음)


class CounterTransaction:
    """
    멤버십 문서(예: 좋아요)의 생성/삭제와 상위 문서의 비정규화 카운터(예: likesCount)
    증감을 하나의 Firestore 트랜잭션으로 묶습니다.

    - 멤버십 존재 여부는 반드시 트랜잭션 안에서 다시 읽습니다 (캐시 사용 금지).
    - 이미 원하는 상태라면 아무것도 쓰지 않습니다. 같은 사용자의 거의 동시 요청 두 개가
      둘 다 생성하거나 둘 다 삭제하는 일을 막습니다.
    - 카운터는 항상 increment 센티널로 갱신합니다 (read-then-overwrite 금지).
    """
    def __init__(self, store: DocumentStore, counter_owner_path: str, counter_field: str = 'likesCount'):
        self.store = store
        self.counter_owner_path = counter_owner_path
        self.counter_field = counter_field

    def adjust(self, delta: int, membership_path: str, create: bool,
               payload: Optional[Dict[str, Any]] = None) -> AdjustResult:
        if delta not in (1, -1):
            raise ValueError(f"delta는 +1 또는 -1 이어야 합니다: {delta}")
        if create != (delta > 0):
            raise ValueError("생성은 +1, 삭제는 -1 과 짝지어져야 합니다.")

        def _adjust_in_transaction(tx) -> AdjustResult:
            membership = tx.get(membership_path)
            owner = tx.get(self.counter_owner_path)

            # 상위 문서가 없으면 멤버십도 없는 것으로 취급합니다.
            if owner is None:
                if membership is not None:
                    tx.delete(membership_path)
                    logger.warning(f"상위 문서 없음, 남은 멤버십만 삭제: {membership_path}")
                return AdjustResult(is_member=False, applied=False)

            exists = membership is not None
            if exists == create:
                return AdjustResult(is_member=exists, applied=False)

            if create:
                fields = dict(payload or {})
                fields['createdAt'] = self.store.server_timestamp()
                tx.set(membership_path, fields)
            else:
                tx.delete(membership_path)
            tx.update(self.counter_owner_path, {self.counter_field: self.store.increment(delta)})
            return AdjustResult(is_member=create, applied=True)

        result = self.store.run_transaction(_adjust_in_transaction)
        logger.info(
            f"카운터 트랜잭션 완료 ({self.counter_owner_path}.{self.counter_field}, "
            f"delta={delta}, applied={result.applied})"
        )
        return result
