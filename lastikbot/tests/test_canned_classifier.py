"""Unit tests for the canned small-talk classifier."""
from __future__ import annotations

import asyncio
import unittest
from typing import List, Optional

from lastikbot.clients.llm.base import BaseLLMClient
from lastikbot.clients.llm.providers.noop import NoOpLLMClient
from lastikbot.orchestrator.classifiers.canned_classifier import (
    CannedClassifier,
    match_keywords,
    parse_label,
)
from lastikbot.orchestrator.types import ChatCategory, OrchestratorConfig


def _run(coro):
    return asyncio.run(coro)


class LabelLLM(BaseLLMClient):
    """Answers every prompt with a fixed label and counts the calls."""

    def __init__(self, label: str = "none", fail: bool = False) -> None:
        self.label = label
        self.fail = fail
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
        if self.fail:
            raise RuntimeError("provider down")
        return self.label

    async def test_connection(self) -> bool:
        return True


class TestKeywordPass(unittest.TestCase):
    def test_categories(self) -> None:
        self.assertEqual(match_keywords("Merhaba!"), ChatCategory.GREETING)
        self.assertEqual(match_keywords("hi"), ChatCategory.GREETING)
        self.assertEqual(match_keywords("Nasılsın?"), ChatCategory.HOW_ARE_YOU)
        self.assertEqual(match_keywords("sen kimsin"), ChatCategory.WHO_ARE_YOU)
        self.assertEqual(match_keywords("neler yapabilirsin, ne yapabilirsin"), ChatCategory.WHAT_CAN_YOU_DO)
        self.assertEqual(match_keywords("Teşekkürler"), ChatCategory.THANKS)
        self.assertEqual(match_keywords("saol"), ChatCategory.THANKS)
        self.assertEqual(match_keywords("hoşça kal"), ChatCategory.GOODBYE)

    def test_exact_only_phrases_need_the_whole_message(self) -> None:
        self.assertIsNone(match_keywords("this tire"))
        self.assertIsNone(match_keywords("2021 corolla lastik"))

    def test_blank(self) -> None:
        self.assertIsNone(match_keywords("   "))


class TestParseLabel(unittest.TestCase):
    def test_first_token(self) -> None:
        self.assertEqual(parse_label("goodbye\n"), ChatCategory.GOODBYE)
        self.assertEqual(parse_label("Greeting - selamlaşma"), ChatCategory.GREETING)

    def test_unknown_labels(self) -> None:
        self.assertIsNone(parse_label("none"))
        self.assertIsNone(parse_label("weather"))
        self.assertIsNone(parse_label(""))


class TestCannedClassifier(unittest.TestCase):
    def test_keyword_hit_skips_llm(self) -> None:
        llm = LabelLLM("goodbye")
        clf = CannedClassifier(llm, OrchestratorConfig())
        self.assertEqual(_run(clf.classify("merhaba")), ChatCategory.GREETING)
        self.assertEqual(llm.prompts, [])

    def test_short_message_labelled_once(self) -> None:
        llm = LabelLLM("goodbye")
        clf = CannedClassifier(llm, OrchestratorConfig())
        self.assertEqual(_run(clf.classify("görüşürüz")), ChatCategory.GOODBYE)
        self.assertEqual(_run(clf.classify("Görüşürüz")), ChatCategory.GOODBYE)
        self.assertEqual(len(llm.prompts), 1)

    def test_long_message_never_reaches_llm(self) -> None:
        llm = LabelLLM("greeting")
        clf = CannedClassifier(llm, OrchestratorConfig(canned_llm_max_length=10))
        self.assertIsNone(_run(clf.classify("İstanbul Kadıköy'deki bayileri listeler misin")))
        self.assertEqual(llm.prompts, [])

    def test_llm_failure_means_no_category(self) -> None:
        clf = CannedClassifier(LabelLLM(fail=True), OrchestratorConfig())
        self.assertIsNone(_run(clf.classify("görüşürüz")))

    def test_unconfigured_llm_is_not_called(self) -> None:
        clf = CannedClassifier(NoOpLLMClient(), OrchestratorConfig())
        self.assertIsNone(_run(clf.classify("görüşürüz")))


if __name__ == "__main__":
    unittest.main()
