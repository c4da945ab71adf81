"""Dealer and tire search API client."""
from lastikbot.clients.search.client import BridgestoneSearchClient, SearchClient
from lastikbot.clients.search.models import (
    BrandModelValidation,
    Dealer,
    DealerSearchResult,
    Tire,
    TireSearchResult,
)

__all__ = [
    "SearchClient",
    "BridgestoneSearchClient",
    "Dealer",
    "Tire",
    "DealerSearchResult",
    "TireSearchResult",
    "BrandModelValidation",
]
