"""Common types and enums shared across all models."""

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field, PlainSerializer

CENT = Decimal("0.01")

# Decimal on the way in, JSON number on the way out
MoneyAmount = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]

CurrencyCode = Annotated[str, Field(pattern="^[A-Z]{3}$", description="ISO 4217 code")]


def quantize_money(value: Decimal) -> Decimal:
    """Round to the currency minor unit (0.01), half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class Visibility(str, Enum):
    """Trip visibility."""

    private = "private"
    shared = "shared"
    public = "public"


class EventType(str, Enum):
    """Itinerary event type."""

    flight = "flight"
    hotel = "hotel"
    activity = "activity"
    restaurant = "restaurant"
    transportation = "transportation"
    destination = "destination"


class ExpenseCategory(str, Enum):
    """Spending category shared by expenses and category budgets."""

    accommodation = "accommodation"
    food = "food"
    activities = "activities"
    transport = "transport"
    shopping = "shopping"
    other = "other"


class CollaboratorRole(str, Enum):
    """Collaborator role on a trip."""

    owner = "owner"
    admin = "admin"
    editor = "editor"
    viewer = "viewer"


class InvitationStatus(str, Enum):
    """Collaborator invitation status."""

    pending = "pending"
    accepted = "accepted"
    declined = "declined"


# Roles allowed to modify trip content
EDIT_ROLES = frozenset({CollaboratorRole.owner, CollaboratorRole.admin, CollaboratorRole.editor})

# Roles allowed to manage collaborators
MANAGE_ROLES = frozenset({CollaboratorRole.owner, CollaboratorRole.admin})


class Location(BaseModel):
    """Named place with optional coordinates (WGS84)."""

    name: str = Field(..., min_length=1, max_length=200)
    address: str | None = Field(None, max_length=500)
    lat: float | None = Field(None, ge=-90, le=90)
    lon: float | None = Field(None, ge=-180, le=180)


class Money(BaseModel):
    """Monetary amount with currency."""

    amount: MoneyAmount = Field(..., ge=0)
    currency: CurrencyCode = "USD"
