"""Unit tests for the rule-based intent detector."""
from __future__ import annotations

import unittest

from lastikbot.clients.gazetteer import TurkishLocationService
from lastikbot.orchestrator.classifiers.rule_detector import (
    LOCATION_CLARIFICATION,
    RuleBasedIntentDetector,
    VehicleCatalog,
    normalize_season,
    parse_bare_coordinates,
    parse_labelled_coordinates,
)
from lastikbot.orchestrator.types import ConversationContext, IntentType

_GAZETTEER = TurkishLocationService()


def _detector() -> RuleBasedIntentDetector:
    return RuleBasedIntentDetector(_GAZETTEER)


class TestCoordinateParsing(unittest.TestCase):
    def test_labelled(self) -> None:
        self.assertEqual(
            parse_labelled_coordinates("latitude 41.0082, longitude 28.9784"), (41.0082, 28.9784)
        )
        self.assertEqual(parse_labelled_coordinates("enlem: 39.9 boylam: 32.85"), (39.9, 32.85))
        self.assertIsNone(parse_labelled_coordinates("latitude yok"))

    def test_bare_pair_must_be_in_range(self) -> None:
        self.assertEqual(parse_bare_coordinates("41.0082, 28.9784"), (41.0082, 28.9784))
        self.assertIsNone(parse_bare_coordinates("120.5 28.9"))
        self.assertIsNone(parse_bare_coordinates("2021 model"))

    def test_normalize_season(self) -> None:
        self.assertEqual(normalize_season("Yazlık"), "summer")
        self.assertEqual(normalize_season("kış"), "winter")
        self.assertEqual(normalize_season("winter"), "winter")
        self.assertEqual(normalize_season(None), "all season")


class TestVehicleCatalog(unittest.TestCase):
    def test_bundled_catalog(self) -> None:
        catalog = VehicleCatalog.from_json()
        self.assertGreater(catalog.brand_count, 50)
        self.assertEqual(catalog.find_brand("toyota corolla"), "toyota")
        self.assertEqual(catalog.find_model("toyota corolla"), "corolla")

    def test_word_boundaries(self) -> None:
        catalog = VehicleCatalog(["KIA"], ["RIO"])
        self.assertIsNone(catalog.find_brand("kiaro"))
        self.assertEqual(catalog.find_model("kia rio 2019"), "rio")


class TestRuleBasedIntentDetector(unittest.TestCase):
    def test_labelled_coordinates_give_location_search(self) -> None:
        result = _detector().detect("Latitude 41.0082 Longitude 28.9784")
        self.assertEqual(result.intent, IntentType.DEALER_SEARCH_BY_LOCATION)
        self.assertEqual(result.parameters, {"latitude": "41.0082", "longitude": "28.9784"})
        self.assertFalse(result.requires_clarification)
        self.assertEqual(result.source, "rule")

    def test_nearest_dealer_with_typo_asks_for_location(self) -> None:
        result = _detector().detect("yakn bayi")
        self.assertEqual(result.intent, IntentType.DEALER_SEARCH_BY_LOCATION)
        self.assertTrue(result.needs_clarification)
        self.assertEqual(result.clarification_message, LOCATION_CLARIFICATION)

    def test_en_yakin_purchase_asks_for_location(self) -> None:
        result = _detector().detect("En yakın nereden alabilirim?")
        self.assertEqual(result.intent, IntentType.DEALER_SEARCH_BY_LOCATION)
        self.assertTrue(result.requires_clarification)

    def test_city_and_district(self) -> None:
        result = _detector().detect("İstanbul Kadıköy bayi")
        self.assertEqual(result.intent, IntentType.DEALER_SEARCH_BY_CITY_DISTRICT)
        self.assertEqual(result.parameters["city"], "İstanbul")
        self.assertEqual(result.parameters["district"], "Kadıköy")

    def test_city_with_suffix_and_existence_cue(self) -> None:
        result = _detector().detect("Ankara'da bayi var mı")
        self.assertEqual(result.intent, IntentType.DEALER_SEARCH_BY_CITY_DISTRICT)
        self.assertEqual(result.parameters["city"], "Ankara")
        self.assertNotIn("district", result.parameters)

    def test_city_alone_is_not_a_dealer_search(self) -> None:
        result = _detector().detect("Ankara")
        self.assertNotEqual(result.intent, IntentType.DEALER_SEARCH_BY_CITY_DISTRICT)

    def test_tire_search_slots(self) -> None:
        result = _detector().detect("2021 Corolla için yaz lastiği öner")
        self.assertEqual(result.intent, IntentType.TIRE_SEARCH)
        self.assertEqual(result.parameters["model"], "corolla")
        self.assertEqual(result.parameters["year"], "2021")
        self.assertEqual(result.parameters["season"], "summer")
        self.assertNotIn("brand", result.parameters)

    def test_year_alone_continues_tire_search(self) -> None:
        context = ConversationContext(session_id="s", current_intent=IntentType.TIRE_SEARCH)
        result = _detector().detect("2019", context)
        self.assertEqual(result.intent, IntentType.TIRE_SEARCH)
        self.assertEqual(result.parameters, {"year": "2019"})

    def test_dealer_cue_during_tire_search_switches_to_city(self) -> None:
        context = ConversationContext(session_id="s", current_intent=IntentType.TIRE_SEARCH)
        result = _detector().detect("İzmir'de nereden alabilirim", context)
        self.assertEqual(result.intent, IntentType.DEALER_SEARCH_BY_CITY_DISTRICT)
        self.assertEqual(result.parameters["city"], "İzmir")

    def test_anything_else_is_general(self) -> None:
        result = _detector().detect("Bridgestone hangi ülkenin markası?")
        self.assertEqual(result.intent, IntentType.GENERAL_QUESTION)
        self.assertEqual(result.parameters, {})


if __name__ == "__main__":
    unittest.main()
