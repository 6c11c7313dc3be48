"""Input and output models for the cellar tools."""

from typing import Optional

from pydantic import BaseModel, Field


class WineFilters(BaseModel):
    """Search criteria for bottles in a cellar. All text filters are substring matches."""

    varietal: Optional[str] = Field(default=None, description="Grape varietal, e.g. Pinot Noir")
    region: Optional[str] = Field(default=None, description="Region, e.g. Bordeaux")
    country: Optional[str] = Field(default=None, description="Country of origin")
    producer: Optional[str] = Field(default=None, description="Producer name")
    wine_type: Optional[str] = Field(default=None, description="Red, White, Rosé, Sparkling...")
    color: Optional[str] = Field(default=None, description="Wine color, e.g. Red, White, Rosé")
    location: Optional[str] = Field(default=None, description="Storage location")
    bin: Optional[str] = Field(default=None, description="Storage bin within a location")
    vintage_min: Optional[int] = Field(default=None, description="Earliest vintage")
    vintage_max: Optional[int] = Field(default=None, description="Latest vintage")
    price_min: Optional[float] = Field(default=None, description="Minimum purchase price")
    price_max: Optional[float] = Field(default=None, description="Maximum purchase price")
    ready_to_drink: Optional[bool] = Field(
        default=None, description="Only wines whose drinking window includes this year"
    )


class FilterWinesInput(WineFilters):
    limit: int = Field(default=20, ge=1, le=200, description="Maximum wines to return")
    count_only: bool = Field(default=False, description="Return only the number of matches")


class AnalyticsInput(BaseModel):
    query: str = Field(
        ...,
        description=(
            'Natural language question for cellar analysis, e.g. "top 10 producers", '
            '"bottles by price range", "which vintage has the most bottles?"'
        ),
    )


class ValueAnalysisInput(BaseModel):
    limit: int = Field(default=5, ge=1, le=50, description="Number of gainers and losers to list")


class NotesContextInput(BaseModel):
    query: str = Field(..., description="Words to look for in personal and bottle notes")
    limit: int = Field(default=10, ge=1, le=50)


class FoodPairingInput(BaseModel):
    food: str = Field(..., description="Dish or ingredients to pair with")
    wine_type: Optional[str] = Field(default=None, description="Preferred type: Red, White, Sparkling...")
    ready_to_drink: Optional[bool] = Field(default=None, description="Only wines ready to drink now")
    limit: int = Field(default=8, ge=1, le=20, description="Maximum bottles to recommend")


class TastingNotesInput(BaseModel):
    i_wine: str = Field(..., description="CellarTracker iWine identifier")


class WineReference(BaseModel):
    """A bottle the assistant wants to show as a card."""

    i_wine: Optional[str] = Field(default=None, description="CellarTracker iWine identifier")
    wine: str = Field(..., description="Wine name")
    vintage: Optional[str] = None
    producer: Optional[str] = None
    region: Optional[str] = None
    varietal: Optional[str] = None
    location: Optional[str] = None


class WineCardsInput(BaseModel):
    wines: list[WineReference] = Field(..., min_length=1)
    context_message: Optional[str] = Field(
        default=None, description="Why these wines are being shown"
    )


class PairingRecommendation(BaseModel):
    """Sommelier guidance for a dish, constrained to what the cellar holds."""

    recommended_varietals: list[str] = Field(default_factory=list)
    recommended_regions: list[str] = Field(default_factory=list)
    recommended_types: list[str] = Field(default_factory=list)
    reasoning: str = Field(default="", description="Why these wines suit the dish")
