"""Unit tests for the conversation context stores and the per-session lock."""
from __future__ import annotations

import asyncio
import unittest
from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from lastikbot.orchestrator.context.database import (
    DatabaseContextStore,
    context_to_row,
    row_to_context,
)
from lastikbot.orchestrator.context.locks import KeyedLock
from lastikbot.orchestrator.context.memory import InMemoryContextStore
from lastikbot.orchestrator.types import ConversationContext, IntentType, utcnow


def _run(coro):
    return asyncio.run(coro)


class TestInMemoryContextStore(unittest.TestCase):
    def test_new_session_gets_defaults(self) -> None:
        store = InMemoryContextStore()
        context = _run(store.get_or_create("s1"))
        self.assertEqual(context.session_id, "s1")
        self.assertIsNone(context.current_intent)
        self.assertEqual(context.brand_model_invalid_attempts, 0)

    def test_repeated_reads_are_identical(self) -> None:
        store = InMemoryContextStore()
        first = _run(store.get_or_create("s1"))
        second = _run(store.get_or_create("s1"))
        self.assertEqual(first.slots(), second.slots())

    def test_changes_need_save(self) -> None:
        store = InMemoryContextStore()
        context = _run(store.get_or_create("s1"))
        context.brand = "toyota"
        self.assertIsNone(_run(store.get_or_create("s1")).brand)

        _run(store.save(context))
        self.assertEqual(_run(store.get_or_create("s1")).brand, "toyota")

    def test_idle_context_starts_over(self) -> None:
        store = InMemoryContextStore(idle_minutes=30)
        context = ConversationContext(
            session_id="s1",
            current_intent=IntentType.TIRE_SEARCH,
            brand="toyota",
            last_activity=utcnow() - timedelta(minutes=31),
        )
        _run(store.save(context))
        fresh = _run(store.get_or_create("s1"))
        self.assertIsNone(fresh.brand)
        self.assertIsNone(fresh.current_intent)

    def test_idle_sessions_are_swept(self) -> None:
        store = InMemoryContextStore(idle_minutes=30)
        _run(store.save(ConversationContext(session_id="old", last_activity=utcnow() - timedelta(hours=2))))
        _run(store.get_or_create("new"))
        self.assertEqual(len(store), 1)

    def test_clear(self) -> None:
        store = InMemoryContextStore()
        context = _run(store.get_or_create("s1"))
        context.awaiting_whatsapp_consent = True
        _run(store.save(context))
        _run(store.clear("s1"))
        self.assertFalse(_run(store.get_or_create("s1")).awaiting_whatsapp_consent)


class TestKeyedLock(unittest.TestCase):
    def test_same_key_is_serialised(self) -> None:
        locks = KeyedLock()
        events = []

        async def turn(name: str) -> None:
            async with locks.hold("s1"):
                events.append(f"{name}-in")
                await asyncio.sleep(0.01)
                events.append(f"{name}-out")

        async def main() -> None:
            await asyncio.gather(turn("a"), turn("b"))

        _run(main())
        self.assertEqual(events, ["a-in", "a-out", "b-in", "b-out"])
        self.assertEqual(len(locks), 0)

    def test_different_keys_do_not_block(self) -> None:
        locks = KeyedLock()
        events = []

        async def turn(key: str) -> None:
            async with locks.hold(key):
                events.append(f"{key}-in")
                await asyncio.sleep(0.01)
                events.append(f"{key}-out")

        async def main() -> None:
            await asyncio.gather(turn("a"), turn("b"))

        _run(main())
        self.assertEqual(events[:2], ["a-in", "b-in"])

    def test_is_locked(self) -> None:
        locks = KeyedLock()

        async def main() -> bool:
            async with locks.hold("s1"):
                return locks.is_locked("s1")

        self.assertTrue(_run(main()))
        self.assertFalse(locks.is_locked("s1"))


def _record(**overrides):
    values = {
        "session_id": "s1",
        "current_intent": "TireSearch",
        "parameters_json": '{"brand": "toyota", "year": "2021"}',
        "brand": "toyota",
        "model": None,
        "year": "2021",
        "season": None,
        "brand_model_invalid_attempts": 1,
        "awaiting_whatsapp_consent": False,
        "awaiting_whatsapp_phone": True,
        "last_dealer_summary": "Bayi listesi:\n- Lassa",
        "last_activity_at": utcnow(),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class TestRowConversion(unittest.TestCase):
    def test_row_to_context(self) -> None:
        context = row_to_context(_record())
        self.assertEqual(context.current_intent, IntentType.TIRE_SEARCH)
        self.assertEqual(context.collected_parameters, {"brand": "toyota", "year": "2021"})
        self.assertEqual(context.brand_model_invalid_attempts, 1)
        self.assertTrue(context.awaiting_whatsapp_phone)

    def test_unknown_intent_and_bad_json(self) -> None:
        context = row_to_context(_record(current_intent="Bogus", parameters_json="{oops"))
        self.assertIsNone(context.current_intent)
        self.assertEqual(context.collected_parameters, {})

    def test_context_to_row(self) -> None:
        context = ConversationContext(
            session_id="s1",
            current_intent=IntentType.TIRE_SEARCH,
            collected_parameters={"city": "İstanbul"},
        )
        row = context_to_row(context)
        self.assertEqual(row["current_intent"], "TireSearch")
        self.assertEqual(row["parameters_json"], '{"city": "İstanbul"}')
        self.assertNotIn("session_id", row)


class _FakeSession:
    def __init__(self) -> None:
        self.commit = AsyncMock()

    async def __aenter__(self) -> "_FakeSession":
        return self

    async def __aexit__(self, *exc) -> None:
        return None


class TestDatabaseContextStore(unittest.TestCase):
    def _store(self, repo: MagicMock) -> DatabaseContextStore:
        patcher = patch(
            "lastikbot.orchestrator.context.database.ConversationContextRepository",
            return_value=repo,
        )
        patcher.start()
        self.addCleanup(patcher.stop)
        return DatabaseContextStore(lambda: _FakeSession(), idle_minutes=30)

    def test_missing_row_gives_defaults(self) -> None:
        repo = MagicMock()
        repo.get_by_id = AsyncMock(return_value=None)
        context = _run(self._store(repo).get_or_create("s1"))
        self.assertEqual(context.session_id, "s1")
        self.assertIsNone(context.brand)

    def test_stored_row_is_loaded(self) -> None:
        repo = MagicMock()
        repo.get_by_id = AsyncMock(return_value=_record())
        context = _run(self._store(repo).get_or_create("s1"))
        self.assertEqual(context.brand, "toyota")

    def test_idle_row_is_ignored(self) -> None:
        repo = MagicMock()
        repo.get_by_id = AsyncMock(return_value=_record(last_activity_at=utcnow() - timedelta(hours=1)))
        context = _run(self._store(repo).get_or_create("s1"))
        self.assertIsNone(context.brand)

    def test_save_writes_row(self) -> None:
        repo = MagicMock()
        repo.put = AsyncMock()
        context = ConversationContext(session_id="s1", brand="toyota")
        _run(self._store(repo).save(context))
        session_id, values = repo.put.await_args.args
        self.assertEqual(session_id, "s1")
        self.assertEqual(values["brand"], "toyota")


if __name__ == "__main__":
    unittest.main()
