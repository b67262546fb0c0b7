import time
import uuid
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

from cachetools import TTLCache

from ..shared.constants import CHAT_CACHE_MAX_ROOMS, CHAT_CACHE_TTL

__all__ = ("ConversationMemory", "ConversationState", "MemoryRecord")


@dataclass(frozen=True, slots=True)
class MemoryRecord:
    id: str
    room_id: str
    user_id: str
    user_name: str
    text: str
    role: str = "user"
    created_at: float = field(default_factory=time.time)


@dataclass(frozen=True, slots=True)
class ConversationState:
    room_id: str
    recent_messages: tuple[MemoryRecord, ...] = ()
    excluded_ids: frozenset[str] = frozenset()

    def render(self) -> str:
        return "\n".join(f"{r.user_name}: {r.text}" for r in self.recent_messages)

    def as_chat_messages(self) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        for record in self.recent_messages:
            if record.role == "assistant":
                messages.append({"role": "assistant", "content": record.text})
            else:
                messages.append(
                    {"role": "user", "content": f"{record.user_name}: {record.text}"}
                )
        return messages


class ConversationMemory:
    def __init__(
        self,
        limit: int = 10,
        *,
        max_rooms: int = CHAT_CACHE_MAX_ROOMS,
        ttl: int = CHAT_CACHE_TTL,
    ):
        self.limit = limit
        self._rooms: TTLCache[str, deque[MemoryRecord]] = TTLCache(
            maxsize=max_rooms, ttl=ttl
        )
        self._processed: set[str] = set()

    def create_record(
        self,
        *,
        room_id: str,
        user_id: str,
        user_name: str,
        text: str,
        role: str = "user",
    ) -> MemoryRecord:
        record = MemoryRecord(
            id=str(uuid.uuid4()),
            room_id=room_id,
            user_id=user_id,
            user_name=user_name,
            text=text,
            role=role,
        )
        self.add(record)
        return record

    def add(self, record: MemoryRecord) -> None:
        history = self._rooms.get(record.room_id)
        if history is None:
            history = deque(maxlen=max(self.limit * 2, 1))
        history.append(record)
        self._rooms[record.room_id] = history
        live = {r.id for histories in self._rooms.values() for r in histories}
        self._processed &= live

    def mark_processed(self, record_id: str) -> None:
        if record_id:
            self._processed.add(record_id)

    def is_processed(self, record_id: str) -> bool:
        return record_id in self._processed

    def history(self, room_id: str) -> list[MemoryRecord]:
        return list(self._rooms.get(room_id) or ())

    def compose_state(
        self, room_id: str, exclude: Iterable[str] = ()
    ) -> ConversationState:
        excluded = frozenset(exclude) | frozenset(self._processed)
        records = [r for r in self.history(room_id) if r.id not in excluded]
        if self.limit:
            records = records[-self.limit :]
        else:
            records = []
        return ConversationState(
            room_id=room_id,
            recent_messages=tuple(records),
            excluded_ids=excluded,
        )
