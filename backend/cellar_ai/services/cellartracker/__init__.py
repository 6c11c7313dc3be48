"""CellarTracker access: inventory export download and page scraping."""

from .client import (
    CellarTrackerClient,
    CellarTrackerError,
    CellarTrackerUnavailableError,
    InvalidCredentialsError,
    get_cellartracker_client,
)
from .parsing import (
    extract_bottle_image,
    extract_community_score,
    extract_professional_reviews,
    extract_tasting_notes,
    parse_inventory_csv,
)

__all__ = [
    "CellarTrackerClient",
    "CellarTrackerError",
    "CellarTrackerUnavailableError",
    "InvalidCredentialsError",
    "get_cellartracker_client",
    "extract_bottle_image",
    "extract_community_score",
    "extract_professional_reviews",
    "extract_tasting_notes",
    "parse_inventory_csv",
]
