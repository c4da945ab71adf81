"""Unit tests for Orchestrator: full turns with fake search and LLM backends."""
from __future__ import annotations

import asyncio
import unittest
from typing import List, Optional, Tuple

from lastikbot.clients.gazetteer import TurkishLocationService
from lastikbot.clients.llm.base import BaseLLMClient
from lastikbot.clients.llm.providers.noop import NOOP_MESSAGE, NoOpLLMClient
from lastikbot.clients.search.models import (
    BrandModelValidation,
    Dealer,
    DealerSearchResult,
    Tire,
    TireSearchResult,
)
from lastikbot.orchestrator.classifiers.rule_detector import LOCATION_CLARIFICATION
from lastikbot.orchestrator.context.memory import InMemoryContextStore
from lastikbot.orchestrator.guard import INVALID_INPUT_MESSAGE
from lastikbot.orchestrator.handlers.tire_handler import ASK_BRAND, TOO_MANY_ATTEMPTS
from lastikbot.orchestrator.handlers.whatsapp_handler import (
    CONSENT_QUESTION,
    INVALID_PHONE_MESSAGE,
    PHONE_PROMPT,
)
from lastikbot.orchestrator.orchestrator import ERROR_MESSAGE, Orchestrator
from lastikbot.orchestrator.types import (
    CannedResponses,
    ChatCategory,
    IntentType,
    OrchestratorConfig,
)
from lastikbot.services.conversation_service import InMemoryMessageLog

_GAZETTEER = TurkishLocationService()
COORDINATES = "Latitude 41.0082 Longitude 28.9784"


def _run(coro):
    return asyncio.run(coro)


class FakeSearch:
    def __init__(self, *, mismatch: bool = False, fail_dealers: bool = False) -> None:
        self.mismatch = mismatch
        self.fail_dealers = fail_dealers
        self.calls: List[Tuple] = []

    async def search_dealers_by_location(self, latitude, longitude):
        self.calls.append(("location", latitude, longitude))
        if self.fail_dealers:
            raise RuntimeError("boom")
        return DealerSearchResult(
            success=True,
            data=[Dealer(unvan1="Lassa Oto", il="İstanbul", ilce="Şişli", distance=0.8)],
        )

    async def search_dealers_by_city_district(self, city, district):
        self.calls.append(("city", city, district))
        return DealerSearchResult(success=True, data=[Dealer(unvan1="Kaya Lastik", il=city, ilce=district)])

    async def search_tires(self, brand, model, year, season):
        self.calls.append(("tires", brand, model, year, season))
        return TireSearchResult(tires=[Tire(content="Turanza 6", season="summer")])

    async def validate_brand_model(self, brand, model):
        self.calls.append(("validate", brand, model))
        await asyncio.sleep(0)
        return BrandModelValidation(is_mismatch=self.mismatch)


class RoutingLLM(BaseLLMClient):
    """Answers the label, intent and free-text prompts differently."""

    def __init__(self, answer: str = "Bridgestone bir Japon markasıdır.") -> None:
        self.answer = answer
        self.intent_reply = '{"intent": "GeneralQuestion", "parameters": {}}'
        self.prompts: List[str] = []

    @property
    def provider(self) -> str:
        return "fake"

    async def complete(
        self,
        prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        self.prompts.append(prompt)
        if "SADECE bu etiketlerden" in prompt:
            return "none"
        if "Analyze the following user message" in prompt:
            return self.intent_reply
        return self.answer

    async def test_connection(self) -> bool:
        return True


def _orchestrator(
    search: Optional[FakeSearch] = None,
    *,
    llm: Optional[BaseLLMClient] = None,
    config: Optional[OrchestratorConfig] = None,
    **kwargs,
) -> Tuple[Orchestrator, InMemoryMessageLog]:
    log = kwargs.pop("message_log", None) or InMemoryMessageLog()
    orch = Orchestrator(
        llm or NoOpLLMClient(),
        config or OrchestratorConfig(),
        search=search or FakeSearch(),
        gazetteer=_GAZETTEER,
        message_log=log,
        **kwargs,
    )
    return orch, log


class TestDealerAndWhatsAppFlow(unittest.TestCase):
    def test_location_search_then_phone_hand_off(self) -> None:
        orch, log = _orchestrator()

        async def scenario():
            replies = []
            for text in (COORDINATES, "evet", "123", "5301234567"):
                replies.append(await orch.process(text, "s1"))
            return replies

        found, consent, bad_phone, done = _run(scenario())
        self.assertTrue(found.message.endswith(CONSENT_QUESTION))
        self.assertEqual(found.dealers[0].full_name, "Lassa Oto")
        self.assertEqual(found.session_id, "s1")
        self.assertEqual(consent.message, PHONE_PROMPT)
        self.assertEqual(bad_phone.message, INVALID_PHONE_MESSAGE)
        self.assertIn("5301234567 numarasına WhatsApp ile ilettim", done.message)
        self.assertIn("- Lassa Oto (0.80 km)", done.message)

        history = log.history("s1")
        self.assertEqual(len(history), 8)
        self.assertTrue(history[0].is_user)
        self.assertIn("Lassa Oto", history[1].dealers_json)

    def test_city_search(self) -> None:
        search = FakeSearch()
        orch, _ = _orchestrator(search)
        response = _run(orch.process("İstanbul Kadıköy bayi", "s1"))
        self.assertEqual(search.calls, [("city", "İstanbul", "Kadıköy")])
        self.assertEqual(response.dealers[0].full_name, "Kaya Lastik")

    def test_nearest_dealer_asks_for_location(self) -> None:
        orch, _ = _orchestrator()
        self.assertEqual(_run(orch.process("en yakın bayi nerede", "s1")).message, LOCATION_CLARIFICATION)


class TestTireFlow(unittest.TestCase):
    def test_missing_brand_is_asked_then_search_runs(self) -> None:
        search = FakeSearch()
        orch, _ = _orchestrator(search)

        async def scenario():
            first = await orch.process("2021 Corolla için yaz lastiği öner", "s1")
            second = await orch.process("Toyota", "s1")
            return first, second

        first, second = _run(scenario())
        self.assertEqual(first.message, ASK_BRAND)
        self.assertEqual(search.calls[-1], ("tires", "toyota", "corolla", 2021, "summer"))
        self.assertEqual(second.tires[0].name, "Turanza 6")

    def test_year_answer_keeps_the_users_vehicle(self) -> None:
        search = FakeSearch()
        llm = RoutingLLM()
        llm.intent_reply = '{"intent": "TireSearch", "parameters": {"brand": "Toyota", "model": "Corolla"}}'
        orch, _ = _orchestrator(search, llm=llm)

        async def scenario():
            await orch.process("Ford Focus lastik", "s1")
            return await orch.process("2019", "s1")

        reply = _run(scenario())
        self.assertEqual(search.calls[-1], ("tires", "ford", "focus", 2019, "all season"))
        self.assertNotIn(("validate", "Toyota", "Corolla"), search.calls)
        self.assertFalse(any("Analyze the following user message" in p for p in llm.prompts))
        self.assertEqual(reply.tires[0].name, "Turanza 6")

    def test_three_mismatches_reset_the_search(self) -> None:
        orch, _ = _orchestrator(FakeSearch(mismatch=True))

        async def scenario():
            replies = []
            for text in ("Toyota Corolla lastik", "corolla", "corolla", "lastik"):
                replies.append(await orch.process(text, "s1"))
            context = await orch.context_store.get_or_create("s1")
            return replies, context

        replies, context = _run(scenario())
        self.assertIn("Lütfen model bilgisini yeniden girin.", replies[0].message)
        self.assertIn("Lütfen model bilgisini yeniden girin.", replies[1].message)
        self.assertEqual(replies[2].message, TOO_MANY_ATTEMPTS)
        self.assertEqual(replies[3].message, ASK_BRAND)
        self.assertEqual(context.brand_model_invalid_attempts, 0)
        self.assertIsNone(context.brand)

    def test_same_session_turns_are_serialised(self) -> None:
        orch, _ = _orchestrator(FakeSearch(mismatch=True))

        async def scenario():
            await asyncio.gather(
                orch.process("Toyota Corolla lastik", "s1"),
                orch.process("Toyota Corolla lastik", "s1"),
            )
            return await orch.context_store.get_or_create("s1")

        self.assertEqual(_run(scenario()).brand_model_invalid_attempts, 2)


class TestCannedReplies(unittest.TestCase):
    def test_greeting_clears_context_and_uses_domain_override(self) -> None:
        config = OrchestratorConfig(
            domain_responses={
                "bayi.example.com": CannedResponses.from_dict({"greeting": "Selam, hoş geldiniz!"}, fill_defaults=False)
            }
        )
        orch, _ = _orchestrator(config=config)

        async def scenario():
            await orch.process(COORDINATES, "s1")
            greeting = await orch.process("merhaba", "s1", domain="bayi.example.com")
            context = await orch.context_store.get_or_create("s1")
            after = await orch.process("evet", "s1")
            return greeting, context, after

        greeting, context, after = _run(scenario())
        self.assertEqual(greeting.message, "Selam, hoş geldiniz!")
        self.assertFalse(context.awaiting_whatsapp_consent)
        self.assertNotEqual(after.message, PHONE_PROMPT)

    def test_missing_override_falls_back_to_global(self) -> None:
        config = OrchestratorConfig(
            domain_responses={"bayi.example.com": CannedResponses.empty()}
        )
        orch, _ = _orchestrator(config=config)
        response = _run(orch.process("teşekkürler", "s1", domain="bayi.example.com"))
        self.assertEqual(response.message, config.canned_responses.get(ChatCategory.THANKS))


class TestGeneralQuestions(unittest.TestCase):
    def test_llm_answer(self) -> None:
        llm = RoutingLLM()
        orch, _ = _orchestrator(llm=llm)
        response = _run(orch.process("Bridgestone hangi ülkenin markası?", "s1"))
        self.assertEqual(response.message, "Bridgestone bir Japon markasıdır.")
        self.assertEqual(len(llm.prompts), 3)

    def test_unconfigured_llm(self) -> None:
        orch, _ = _orchestrator()
        self.assertEqual(_run(orch.process("Bridgestone hangi ülkenin markası?", "s1")).message, NOOP_MESSAGE)


class FailingSaveStore(InMemoryContextStore):
    async def save(self, context) -> None:
        raise RuntimeError("disk full")


class FailingLog(InMemoryMessageLog):
    async def append(self, session_id, content, **kwargs) -> None:
        raise RuntimeError("db down")


class TestErrorHandling(unittest.TestCase):
    def test_handler_crash_becomes_apology(self) -> None:
        orch, log = _orchestrator(FakeSearch(fail_dealers=True))
        response = _run(orch.process(COORDINATES, "s1"))
        self.assertEqual(response.message, ERROR_MESSAGE)
        self.assertEqual(response.session_id, "s1")
        last = log.history("s1")[-1]
        self.assertFalse(last.is_user)
        self.assertEqual(last.error_message, "boom")

    def test_crashed_turn_leaves_context_untouched(self) -> None:
        orch, _ = _orchestrator(FakeSearch(fail_dealers=True))

        async def scenario():
            await orch.process(COORDINATES, "s1")
            return await orch.context_store.get_or_create("s1")

        context = _run(scenario())
        self.assertFalse(context.awaiting_whatsapp_consent)
        self.assertEqual(context.collected_parameters, {})

    def test_rejected_input_is_not_logged(self) -> None:
        orch, log = _orchestrator()
        response = _run(orch.process("   ", "s1"))
        self.assertEqual(response.message, INVALID_INPUT_MESSAGE)
        self.assertEqual(response.session_id, "s1")
        self.assertEqual(log.sessions, {})

    def test_new_session_id_is_issued(self) -> None:
        orch, log = _orchestrator()
        response = _run(orch.process("merhaba"))
        self.assertTrue(response.session_id)
        self.assertIn(response.session_id, log.sessions)

    def test_persistence_failures_do_not_block_the_reply(self) -> None:
        orch, _ = _orchestrator(
            context_store=FailingSaveStore(), message_log=FailingLog()
        )
        response = _run(orch.process("İstanbul Kadıköy bayi", "s1"))
        self.assertEqual(response.dealers[0].full_name, "Kaya Lastik")

    def test_tire_intent_is_remembered(self) -> None:
        orch, _ = _orchestrator()

        async def scenario():
            await orch.process("lastik arıyorum", "s1")
            return await orch.context_store.get_or_create("s1")

        self.assertIs(_run(scenario()).current_intent, IntentType.TIRE_SEARCH)


if __name__ == "__main__":
    unittest.main()
