"""Cellar tools shared by the chat assistant and the REST API."""

from .cellar_tools import (
    analyze_value,
    filter_wines,
    get_available_wine_options,
    retrieve_notes_context,
    summarize_inventory,
)
from .pairing import FoodPairingService
from .tasting_notes import get_tasting_notes
from .toolkit import CellarToolkit
from .wine_cards import WineCardBuilder

__all__ = [
    "CellarToolkit",
    "FoodPairingService",
    "WineCardBuilder",
    "analyze_value",
    "filter_wines",
    "get_available_wine_options",
    "get_tasting_notes",
    "retrieve_notes_context",
    "summarize_inventory",
]
