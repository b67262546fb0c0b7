"""
Tests for conversational memory and state composition
"""
from twitch_ai.bot.memory import ConversationMemory


def _add(memory, text, role="user"):
    return memory.create_record(
        room_id="room", user_id="u1", user_name="Bob", text=text, role=role
    )


class TestConversationMemory:
    def test_compose_state_keeps_last_records(self):
        memory = ConversationMemory(limit=2)
        for text in ("a", "b", "c"):
            _add(memory, text)
        state = memory.compose_state("room")
        assert [r.text for r in state.recent_messages] == ["b", "c"]

    def test_exclude_by_identity(self):
        memory = ConversationMemory(limit=10)
        first = _add(memory, "a")
        _add(memory, f"mentions {first.id} in text")
        state = memory.compose_state("room", exclude=[first.id])
        texts = [r.text for r in state.recent_messages]
        assert texts == [f"mentions {first.id} in text"]

    def test_processed_records_stay_excluded(self):
        memory = ConversationMemory(limit=10)
        record = _add(memory, "a")
        memory.mark_processed(record.id)
        assert memory.compose_state("room").recent_messages == ()
        assert len(memory.history("room")) == 1

    def test_rooms_are_separate(self):
        memory = ConversationMemory(limit=10)
        _add(memory, "a")
        assert memory.compose_state("other").recent_messages == ()

    def test_zero_limit_gives_empty_state(self):
        memory = ConversationMemory(limit=0)
        _add(memory, "a")
        assert memory.compose_state("room").recent_messages == ()

    def test_chat_messages_and_render(self):
        memory = ConversationMemory(limit=10)
        _add(memory, "hi")
        _add(memory, "hello!", role="assistant")
        state = memory.compose_state("room")
        assert state.as_chat_messages() == [
            {"role": "user", "content": "Bob: hi"},
            {"role": "assistant", "content": "hello!"},
        ]
        assert state.render() == "Bob: hi\nBob: hello!"
