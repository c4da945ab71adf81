"""Unit tests for ConversationService and the message logs, with mocked repositories."""
from __future__ import annotations

import asyncio
import json
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from lastikbot.clients.search.models import Dealer, Tire
from lastikbot.services.conversation_service import (
    ConversationService,
    DatabaseMessageLog,
    InMemoryMessageLog,
    dump_items,
)


def _run(coro):
    return asyncio.run(coro)


class TestDumpItems(unittest.TestCase):
    def test_uses_api_field_names(self) -> None:
        text = dump_items([Dealer(unvan1="Lassa", google_maps_url="https://maps/x")])
        data = json.loads(text)
        self.assertEqual(data[0]["unvan1"], "Lassa")
        self.assertEqual(data[0]["googleMapsUrl"], "https://maps/x")

    def test_empty(self) -> None:
        self.assertIsNone(dump_items(None))
        self.assertIsNone(dump_items([]))


class TestInMemoryMessageLog(unittest.TestCase):
    def test_session_and_messages(self) -> None:
        log = InMemoryMessageLog()

        async def scenario():
            await log.ensure_session("s1", domain="bayi.example.com", user_agent="x" * 600, ip_address="10.0.0.1")
            await log.append("s1", "lastik", is_user=True)
            await log.append("s1", "1 adet lastik bulundu", is_user=False, tires=[Tire(content="Turanza 6")])

        _run(scenario())
        session = log.sessions["s1"]
        self.assertEqual(session.domain, "bayi.example.com")
        self.assertEqual(len(session.user_agent), 500)
        history = log.history("s1")
        self.assertEqual([m.is_user for m in history], [True, False])
        self.assertIn("Turanza 6", history[1].tires_json)
        self.assertIsNone(history[1].dealers_json)

    def test_append_creates_missing_session(self) -> None:
        log = InMemoryMessageLog()
        _run(log.append("s2", "merhaba", is_user=True))
        self.assertEqual(len(log.history("s2")), 1)
        self.assertEqual(log.history("unknown"), [])

    def test_repeat_ensure_keeps_created_at(self) -> None:
        log = InMemoryMessageLog()
        _run(log.ensure_session("s1", domain="a"))
        created = log.sessions["s1"].created_at
        _run(log.ensure_session("s1", domain="b"))
        self.assertEqual(log.sessions["s1"].created_at, created)
        self.assertEqual(log.sessions["s1"].domain, "a")


class TestConversationService(unittest.TestCase):
    def setUp(self) -> None:
        self.session = MagicMock()
        self.svc = ConversationService(self.session)
        self.svc._session_repo = MagicMock()
        self.svc._message_repo = MagicMock()

    def test_add_message_serialises_dealers(self) -> None:
        self.svc._message_repo.add = AsyncMock(return_value=SimpleNamespace(id=1))
        _run(self.svc.add_message("s1", "bulundu", is_user=False, dealers=[Dealer(unvan1="Lassa")]))
        kwargs = self.svc._message_repo.add.await_args.kwargs
        self.assertFalse(kwargs["is_user"])
        self.assertIn("Lassa", kwargs["dealers_json"])
        self.assertIsNone(kwargs["tires_json"])
        self.assertIsNotNone(kwargs["timestamp"])

    def test_ensure_session_passes_metadata(self) -> None:
        self.svc._session_repo.ensure = AsyncMock(return_value=SimpleNamespace(session_id="s1"))
        _run(self.svc.ensure_session("s1", domain="d", user_agent="ua", ip_address="1.2.3.4"))
        kwargs = self.svc._session_repo.ensure.await_args.kwargs
        self.assertEqual(kwargs["domain"], "d")
        self.assertEqual(kwargs["ip_address"], "1.2.3.4")

    def test_close_session(self) -> None:
        self.svc._session_repo.deactivate = AsyncMock(return_value=True)
        self.assertTrue(_run(self.svc.close_session("s1")))

    def test_history(self) -> None:
        messages = [SimpleNamespace(content="a"), SimpleNamespace(content="b")]
        self.svc._message_repo.for_session = AsyncMock(return_value=messages)
        self.assertEqual(_run(self.svc.history("s1", last_n=2)), messages)
        self.svc._message_repo.for_session.assert_awaited_once_with("s1", last_n=2)


class _FakeSession:
    def __init__(self) -> None:
        self.commit = AsyncMock()

    async def __aenter__(self) -> "_FakeSession":
        return self

    async def __aexit__(self, *exc) -> None:
        return None


class TestDatabaseMessageLog(unittest.TestCase):
    def test_append_commits_once(self) -> None:
        session = _FakeSession()
        svc = MagicMock()
        svc.ensure_session = AsyncMock()
        svc.add_message = AsyncMock()
        with patch("lastikbot.services.conversation_service.ConversationService", return_value=svc):
            _run(DatabaseMessageLog(lambda: session).append("s1", "merhaba", is_user=True))
        svc.ensure_session.assert_awaited_once_with("s1")
        self.assertEqual(svc.add_message.await_args.args, ("s1", "merhaba"))
        session.commit.assert_awaited_once()


if __name__ == "__main__":
    unittest.main()
