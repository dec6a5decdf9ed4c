"""
manager/app/utils/state.py

Branch slot flow drafts with Redis persistence.
"""

import json
import logging
from typing import Optional

import redis

from ..config import FLOW_TTL_SECONDS, REDIS_URL

logger = logging.getLogger(__name__)

FLOW_KEY = "branch_slot:flow:{flow_id}"


class FlowStateStore:
    """Serialized SlotFlowState per flow id, expiring after the TTL."""

    def __init__(self, client: redis.Redis, ttl: int = FLOW_TTL_SECONDS):
        self._redis = client
        self.ttl = ttl

    def save(self, flow_id: str, data: dict) -> None:
        self._redis.setex(FLOW_KEY.format(flow_id=flow_id), self.ttl, json.dumps(data))

    def load(self, flow_id: str) -> Optional[dict]:
        raw = self._redis.get(FLOW_KEY.format(flow_id=flow_id))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Corrupt flow draft dropped: {flow_id}")
            self.delete(flow_id)
            return None

    def delete(self, flow_id: str) -> None:
        self._redis.delete(FLOW_KEY.format(flow_id=flow_id))


def get_flow_store(url: Optional[str] = REDIS_URL) -> FlowStateStore:
    if not url:
        raise RuntimeError("REDIS_URL is not set")
    return FlowStateStore(redis.from_url(url, decode_responses=True))
