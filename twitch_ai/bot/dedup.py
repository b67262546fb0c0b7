from collections import deque

from ..shared.constants import DEDUP_LEDGER_CAPACITY

__all__ = ("DedupLedger",)


class DedupLedger:
    def __init__(self, capacity: int = DEDUP_LEDGER_CAPACITY):
        if capacity <= 0:
            raise ValueError("ledger capacity must be > 0")
        self.capacity = capacity
        self._order: deque[str] = deque()
        self._ids: set[str] = set()

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, message_id: object) -> bool:
        return isinstance(message_id, str) and self.seen(message_id)

    def seen(self, message_id: str) -> bool:
        if not message_id:
            return False
        return message_id in self._ids

    def record(self, message_id: str) -> None:
        if not message_id or message_id in self._ids:
            return
        self._order.append(message_id)
        self._ids.add(message_id)
        if len(self._order) > self.capacity:
            self._ids.discard(self._order.popleft())

    def check_and_record(self, message_id: str) -> bool:
        if self.seen(message_id):
            return False
        self.record(message_id)
        return True

    def clear(self) -> None:
        self._order.clear()
        self._ids.clear()
