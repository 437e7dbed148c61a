"""
Tour rate configuration
Hourly wine-tour rates, shared tours, transfers and wait time
"""

import logging
from datetime import date
from typing import Optional

logger = logging.getLogger(__name__)


class PricingError(ValueError):
    """Raised when a quote cannot be produced for the requested service"""


# ============================================================================
# RATE TABLES
# ============================================================================

# (min guests, max guests, Sun-Wed rate, Thu-Sat rate)
WINE_TOUR_RATES = [
    (1, 2, 85, 95),
    (3, 4, 95, 105),
    (5, 6, 105, 115),
    (7, 8, 115, 125),
    (9, 11, 130, 140),
    (12, 14, 140, 150),
]

MINIMUM_HOURS = {"sun_wed": 4, "thu_sat": 5}

SHARED_TOUR = {
    "base_price_per_person": 95,
    "with_lunch_price_per_person": 115,
    "max_guests": 14,
    "days": {6, 0, 1, 2},  # Sun, Mon, Tue, Wed
}

TRANSFER_RATES = {
    "seatac_to_walla": 850,
    "walla_to_seatac": 850,
    # Not yet priced: quoted on request
    "pasco_to_walla": 0,
    "walla_to_pasco": 0,
    "pdx_to_walla": 0,
    "walla_to_pdx": 0,
}
LOCAL_TRANSFER_BASE = 100
LOCAL_TRANSFER_INCLUDED_MILES = 10
LOCAL_TRANSFER_PER_MILE = 3

# (min guests, max guests, weekday rate, weekend rate)
WAIT_TIME_RATES = [
    (1, 4, 75, 85),
    (5, 8, 95, 105),
    (9, 14, 110, 120),
]
WAIT_TIME_MINIMUM_HOURS = 1

TAX_RATE = 0.091
DEFAULT_DEPOSIT_PERCENTAGE = 50

# Linear processing fees by payment method: amount * percentage / 100 + fixed, optionally capped
PAYMENT_METHOD_FEES = {
    "card": {"percentage": 2.9, "fixed": 0.30, "cap": None},
    "ach": {"percentage": 0.8, "fixed": 0.0, "cap": 5.00},
    "check": {"percentage": 0.0, "fixed": 0.0, "cap": None},
}

MAX_PARTY_SIZE = 14


# ============================================================================
# HELPERS
# ============================================================================


def is_thursday_to_saturday(tour_date: date) -> bool:
    return tour_date.weekday() in (3, 4, 5)


def get_day_type(tour_date: date) -> str:
    return "Thu-Sat" if is_thursday_to_saturday(tour_date) else "Sun-Wed"


def get_minimum_hours(tour_date: date) -> int:
    return MINIMUM_HOURS["thu_sat"] if is_thursday_to_saturday(tour_date) else MINIMUM_HOURS["sun_wed"]


def _tier_for(party_size: int, table: list[tuple]) -> tuple:
    if party_size < 1 or party_size > MAX_PARTY_SIZE:
        raise PricingError(f"Party size must be between 1 and {MAX_PARTY_SIZE}")
    for tier in table:
        if tier[0] <= party_size <= tier[1]:
            return tier
    raise PricingError(f"No rate configured for party size {party_size}")


def get_hourly_rate(party_size: int, tour_date: date) -> float:
    _, _, sun_wed, thu_sat = _tier_for(party_size, WINE_TOUR_RATES)
    return thu_sat if is_thursday_to_saturday(tour_date) else sun_wed


def get_rate_tier(party_size: int) -> str:
    low, high, _, _ = _tier_for(party_size, WINE_TOUR_RATES)
    return f"{low}-{high} guests"


def calculate_tax(amount: float) -> float:
    return round(amount * TAX_RATE, 2)


def calculate_deposit(total: float, percentage: Optional[float] = None) -> float:
    pct = DEFAULT_DEPOSIT_PERCENTAGE if percentage is None else percentage
    return round(total * pct / 100, 2)


# ============================================================================
# SERVICE PRICES
# ============================================================================


def calculate_wine_tour_price(hours: float, party_size: int, tour_date: date) -> dict:
    """Private wine tour priced by the hour, with a per-day minimum"""
    if hours <= 0:
        raise PricingError("Tour hours must be greater than zero")

    hourly_rate = get_hourly_rate(party_size, tour_date)
    minimum_hours = get_minimum_hours(tour_date)
    billable_hours = max(hours, minimum_hours)
    subtotal = round(hourly_rate * billable_hours, 2)
    tax = calculate_tax(subtotal)

    return {
        "hourly_rate": hourly_rate,
        "hours": billable_hours,
        "subtotal": subtotal,
        "tax": tax,
        "total": round(subtotal + tax, 2),
        "day_type": get_day_type(tour_date),
        "rate_tier": get_rate_tier(party_size),
        "minimum_hours": minimum_hours,
    }


def is_shared_tour_day(tour_date: date) -> bool:
    return tour_date.weekday() in SHARED_TOUR["days"]


def calculate_shared_tour_price(guests: int, tour_date: Optional[date] = None, include_lunch: bool = True) -> dict:
    """Per-person shared tour, only offered Sunday through Wednesday"""
    if guests < 1 or guests > SHARED_TOUR["max_guests"]:
        raise PricingError(f"Shared tours are limited to {SHARED_TOUR['max_guests']} guests")
    if tour_date is not None and not is_shared_tour_day(tour_date):
        raise PricingError("Shared tours run Sunday through Wednesday only")

    per_person = (
        SHARED_TOUR["with_lunch_price_per_person"] if include_lunch else SHARED_TOUR["base_price_per_person"]
    )
    subtotal = round(per_person * guests, 2)
    tax = calculate_tax(subtotal)
    return {
        "price_per_person": per_person,
        "guests": guests,
        "include_lunch": include_lunch,
        "subtotal": subtotal,
        "tax": tax,
        "total": round(subtotal + tax, 2),
    }


def calculate_transfer_price(route: str, miles: Optional[float] = None) -> dict:
    """Airport transfers use a flat route price; local transfers are priced by mileage"""
    if route == "local":
        if miles is None or miles < 0:
            raise PricingError("Local transfers require a non-negative mileage")
        extra_miles = max(0, miles - LOCAL_TRANSFER_INCLUDED_MILES)
        subtotal = round(LOCAL_TRANSFER_BASE + extra_miles * LOCAL_TRANSFER_PER_MILE, 2)
        return {"route": route, "miles": miles, "subtotal": subtotal, "quote_required": False}

    if route not in TRANSFER_RATES:
        raise PricingError(f"Unknown transfer route: {route}")

    subtotal = float(TRANSFER_RATES[route])
    return {"route": route, "miles": miles, "subtotal": subtotal, "quote_required": subtotal == 0}


def calculate_wait_time_price(hours: float, party_size: int, tour_date: date) -> dict:
    low, high, weekday, weekend = _tier_for(party_size, WAIT_TIME_RATES)
    hourly_rate = weekend if is_thursday_to_saturday(tour_date) else weekday
    billable_hours = max(hours, WAIT_TIME_MINIMUM_HOURS)
    return {
        "hourly_rate": hourly_rate,
        "hours": billable_hours,
        "subtotal": round(hourly_rate * billable_hours, 2),
        "rate_tier": f"{low}-{high} guests",
    }


# ============================================================================
# PAYMENTS
# ============================================================================


def calculate_processing_fee(amount: float, payment_method: str) -> float:
    """Linear processing fee: percentage of the amount plus a fixed fee"""
    config = PAYMENT_METHOD_FEES.get(payment_method)
    if config is None:
        raise PricingError(f"Unsupported payment method: {payment_method}")
    if amount <= 0:
        return 0.0

    fee = amount * config["percentage"] / 100 + config["fixed"]
    if config["cap"] is not None:
        fee = min(fee, config["cap"])
    return round(fee, 2)


def calculate_payment_amounts(
    total: float, payment_method: str = "card", deposit_percentage: Optional[float] = None
) -> dict:
    """Deposit due now, its processing fee and what will be charged"""
    deposit = calculate_deposit(total, deposit_percentage)
    fee = calculate_processing_fee(deposit, payment_method)
    return {
        "payment_method": payment_method,
        "deposit_amount": deposit,
        "processing_fee": fee,
        "charge_total": round(deposit + fee, 2),
        "balance_after_deposit": round(total - deposit, 2),
    }
