"""Turkish province/district lookup backed by il.json and ilce.json."""
from lastikbot.clients.gazetteer.service import Gazetteer, TurkishLocationService

__all__ = ["Gazetteer", "TurkishLocationService"]
