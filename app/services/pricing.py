"""
Quote calculations built on the rate configuration
- Day-by-day accumulation for multi-day quotes
- Trip proposal totals from priced inclusions
"""

import logging
from datetime import date
from typing import Optional

from .rate_config import (
    PricingError,
    calculate_deposit,
    calculate_shared_tour_price,
    calculate_tax,
    calculate_transfer_price,
    calculate_wait_time_price,
    calculate_wine_tour_price,
)

logger = logging.getLogger(__name__)


def price_service(service: dict, party_size: int, service_date: date) -> dict:
    """Price one service line of a quote day"""
    service_type = service.get("type")

    if service_type == "wine_tour":
        result = calculate_wine_tour_price(service.get("hours") or 0, party_size, service_date)
        description = f"Private wine tour ({result['hours']:g} hrs @ ${result['hourly_rate']}/hr)"
    elif service_type == "shared_tour":
        include_lunch = service.get("include_lunch", True)
        result = calculate_shared_tour_price(party_size, service_date, include_lunch)
        description = f"Shared tour x{party_size}" + (" with lunch" if include_lunch else "")
    elif service_type == "transfer":
        result = calculate_transfer_price(service.get("route") or "", service.get("miles"))
        description = f"Transfer ({result['route']})"
    elif service_type == "wait_time":
        result = calculate_wait_time_price(service.get("hours") or 0, party_size, service_date)
        description = f"Wait time ({result['hours']:g} hrs)"
    elif service_type == "custom":
        amount = service.get("amount")
        if amount is None or amount < 0:
            raise PricingError("Custom services require a non-negative amount")
        result = {"subtotal": round(float(amount), 2)}
        description = service.get("description") or "Custom service"
    else:
        raise PricingError(f"Unknown service type: {service_type}")

    return {
        "type": service_type,
        "description": service.get("description") or description,
        "subtotal": result["subtotal"],
        "detail": result,
    }


def calculate_multi_day_quote(party_size: int, days: list[dict], deposit_percentage: Optional[float] = None) -> dict:
    """
    Accumulate a quote one day at a time.

    Each day is {"date": date, "services": [...]}. Days are priced in date
    order; each carries its own subtotal, tax and the running total so far.
    """
    if not days:
        raise PricingError("At least one day is required")

    seen_dates = set()
    for day in days:
        if day["date"] in seen_dates:
            raise PricingError(f"Duplicate day in quote: {day['date'].isoformat()}")
        seen_dates.add(day["date"])

    breakdown = []
    running_total = 0.0
    subtotal = 0.0
    taxes = 0.0

    for index, day in enumerate(sorted(days, key=lambda d: d["date"]), start=1):
        services = day.get("services") or []
        if not services:
            raise PricingError(f"Day {day['date'].isoformat()} has no services")

        lines = [price_service(service, party_size, day["date"]) for service in services]
        day_subtotal = round(sum(line["subtotal"] for line in lines), 2)
        day_tax = calculate_tax(day_subtotal)
        day_total = round(day_subtotal + day_tax, 2)

        subtotal += day_subtotal
        taxes += day_tax
        running_total = round(running_total + day_total, 2)

        breakdown.append(
            {
                "day_number": index,
                "date": day["date"].isoformat(),
                "services": lines,
                "subtotal": day_subtotal,
                "tax": day_tax,
                "total": day_total,
                "running_total": running_total,
            }
        )

    grand_total = round(subtotal + taxes, 2)
    return {
        "party_size": party_size,
        "days": breakdown,
        "subtotal": round(subtotal, 2),
        "taxes": round(taxes, 2),
        "total": grand_total,
        "deposit_amount": calculate_deposit(grand_total, deposit_percentage),
    }


# ============================================================================
# TRIP PROPOSAL PRICING
# ============================================================================


def calculate_line_total(inclusion: dict, party_size: int) -> float:
    unit_price = inclusion.get("unit_price") or 0
    if inclusion.get("pricing_type") == "per_person":
        return round(unit_price * party_size, 2)
    return round(unit_price * (inclusion.get("quantity") or 1), 2)


def calculate_proposal_pricing(
    inclusions: list[dict],
    party_size: int,
    tax_rate: float,
    discount_percentage: float = 0,
    gratuity_percentage: float = 0,
    deposit_percentage: float = 50,
    deposit_paid: bool = False,
    planning_fee_mode: str = "none",
    planning_fee_percentage: float = 0,
) -> dict:
    """
    Total a proposal from its inclusions.

    In percentage planning-fee mode the planning_fee line is re-priced as a
    percentage of every other line. Discount is applied before tax; the
    taxable base shrinks in proportion to the discount.

    Returns the totals plus "line_totals" (and the new planning fee unit price
    when it changed) in the same order as the inclusions given.
    """
    line_totals = [calculate_line_total(inc, party_size) for inc in inclusions]
    planning_fee_unit_price = None

    if planning_fee_mode == "percentage":
        services_base = sum(
            total for inc, total in zip(inclusions, line_totals) if inc.get("inclusion_type") != "planning_fee"
        )
        for i, inc in enumerate(inclusions):
            if inc.get("inclusion_type") == "planning_fee":
                planning_fee_unit_price = round(services_base * (planning_fee_percentage or 0) / 100, 2)
                line_totals[i] = planning_fee_unit_price

    subtotal = round(sum(line_totals), 2)
    taxable_base = sum(
        total
        for inc, total in zip(inclusions, line_totals)
        if inc.get("is_taxable", True) and not inc.get("tax_included_in_price", False)
    )

    discount_amount = round(subtotal * (discount_percentage or 0) / 100, 2)
    after_discount = round(subtotal - discount_amount, 2)
    adjusted_taxable = taxable_base * (after_discount / subtotal) if subtotal > 0 else 0
    taxes = round(adjusted_taxable * (tax_rate or 0), 2)
    gratuity_amount = round(after_discount * (gratuity_percentage or 0) / 100, 2)
    total = round(after_discount + taxes + gratuity_amount, 2)
    deposit_amount = round(total * (deposit_percentage or 0) / 100, 2)
    balance_due = round(total - deposit_amount, 2) if deposit_paid else total

    return {
        "line_totals": line_totals,
        "planning_fee_unit_price": planning_fee_unit_price,
        "subtotal": subtotal,
        "discount_amount": discount_amount,
        "taxable_base": round(adjusted_taxable, 2),
        "taxes": taxes,
        "gratuity_amount": gratuity_amount,
        "total": total,
        "deposit_amount": deposit_amount,
        "balance_due": balance_due,
    }
