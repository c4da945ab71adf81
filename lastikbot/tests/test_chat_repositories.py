"""Unit tests for the chat repositories against a mocked AsyncSession."""
from __future__ import annotations

import asyncio
import unittest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from lastikbot.infra.database.models import ChatMessage, ChatSession, ConversationContextRecord
from lastikbot.infra.database.repositories import (
    ChatMessageRepository,
    ChatSessionRepository,
    ConversationContextRepository,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _run(coro):
    return asyncio.run(coro)


def _session(existing=None) -> MagicMock:
    session = MagicMock()
    session.get = AsyncMock(return_value=existing)
    session.flush = AsyncMock()
    session.delete = AsyncMock()
    session.execute = AsyncMock()
    return session


class TestChatSessionRepository(unittest.TestCase):
    def test_ensure_creates_row(self) -> None:
        session = _session()
        row = _run(ChatSessionRepository(session).ensure(
            "s1", now=NOW, domain="bayi.example.com", user_agent="u" * 700
        ))
        self.assertIsInstance(row, ChatSession)
        self.assertEqual(len(row.user_agent), 500)
        self.assertTrue(row.is_active)
        session.add.assert_called_once_with(row)

    def test_ensure_touches_existing(self) -> None:
        existing = SimpleNamespace(session_id="s1", last_activity_at=NOW - timedelta(hours=2))
        session = _session(existing)
        row = _run(ChatSessionRepository(session).ensure("s1", now=NOW, domain="ignored"))
        self.assertIs(row, existing)
        self.assertEqual(existing.last_activity_at, NOW)
        session.add.assert_not_called()

    def test_deactivate_reports_rowcount(self) -> None:
        session = _session()
        session.execute.return_value = SimpleNamespace(rowcount=0)
        self.assertFalse(_run(ChatSessionRepository(session).deactivate("missing")))


class TestChatMessageRepository(unittest.TestCase):
    def test_add(self) -> None:
        session = _session()
        row = _run(ChatMessageRepository(session).add("s1", "merhaba", is_user=True, timestamp=NOW))
        self.assertIsInstance(row, ChatMessage)
        self.assertTrue(row.is_user)
        self.assertIsNone(row.dealers_json)

    def test_for_session_last_n(self) -> None:
        session = _session()
        result = MagicMock()
        result.scalars.return_value.all.return_value = ["a", "b", "c"]
        session.execute.return_value = result
        repo = ChatMessageRepository(session)
        self.assertEqual(_run(repo.for_session("s1", last_n=2)), ["b", "c"])
        self.assertEqual(_run(repo.for_session("s1")), ["a", "b", "c"])


class TestConversationContextRepository(unittest.TestCase):
    def test_put_inserts_then_overwrites(self) -> None:
        session = _session()
        record = _run(ConversationContextRepository(session).put("s1", {"brand": "toyota"}))
        self.assertIsInstance(record, ConversationContextRecord)
        self.assertEqual(record.brand, "toyota")

        existing = SimpleNamespace(session_id="s1", brand="toyota", model=None)
        session = _session(existing)
        _run(ConversationContextRepository(session).put("s1", {"model": "corolla"}))
        self.assertEqual((existing.brand, existing.model), ("toyota", "corolla"))
        session.flush.assert_awaited_once()

    def test_delete_missing(self) -> None:
        session = _session()
        self.assertFalse(_run(ConversationContextRepository(session).delete("nope")))
        session.delete.assert_not_awaited()


if __name__ == "__main__":
    unittest.main()
