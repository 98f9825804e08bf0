"""
Sample actions registered when ACTION_MODULES is left at its default.

Any module can be listed in ACTION_MODULES; it only needs a CAPABILITIES
list of providers and, optionally, a LOADERS list.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from config import Config
from orchestration.action_model import RiskLevel
from orchestration.capabilities import CapabilityProvider, FunctionCapability
from orchestration.loaders import ShellActionLoader


@dataclass
class Customer:
    first_name: str
    last_name: str
    reason_for_calling: str = ""


@dataclass
class Reservation:
    customer: Customer
    restaurant: str
    party_size: int = 2
    dietary_needs: List[str] = field(default_factory=list)


def recipe_taste(recipe: str) -> str:
    """provide the taste of recipe based on name"""
    return f"{recipe} tastes rich, creamy and mildly spiced"


def current_time() -> str:
    """tell the current date and time"""
    return datetime.now().isoformat(timespec='seconds')


class ReservationAction(CapabilityProvider):
    """Books a table; changes the outside world, so it asks first"""

    action_method = "book_restaurant"
    action_name = "bookRestaurant"
    description = "book a restaurant table for a customer"
    risk = RiskLevel.MEDIUM
    group = "dining"
    group_description = "restaurants and food"

    def __init__(self):
        self.bookings: List[Reservation] = []

    def book_restaurant(self, reservation: Reservation) -> str:
        self.bookings.append(reservation)
        return (
            f"Booked {reservation.restaurant} for {reservation.party_size} "
            f"under {reservation.customer.first_name} {reservation.customer.last_name}"
        )


CAPABILITIES = [
    FunctionCapability(recipe_taste, name="getRecipeTaste", group="dining", group_description="restaurants and food"),
    FunctionCapability(current_time, name="getCurrentTime"),
    ReservationAction(),
]

LOADERS = [
    ShellActionLoader(Config.SHELL_ACTIONS_FILE),
]
