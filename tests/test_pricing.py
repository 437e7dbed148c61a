from datetime import date

import pytest

from app.services.pricing import (
    calculate_line_total,
    calculate_multi_day_quote,
    calculate_proposal_pricing,
    price_service,
)
from app.services.rate_config import (
    PricingError,
    calculate_payment_amounts,
    calculate_processing_fee,
    calculate_shared_tour_price,
    calculate_transfer_price,
    calculate_wait_time_price,
    calculate_wine_tour_price,
    get_day_type,
)

WEDNESDAY = date(2030, 1, 2)
THURSDAY = date(2030, 1, 3)
SATURDAY = date(2030, 1, 5)
SUNDAY = date(2030, 1, 6)
MONDAY = date(2030, 1, 7)


class TestWineTourRates:
    def test_thursday_to_saturday_rate_applies(self):
        result = calculate_wine_tour_price(6, 6, THURSDAY)

        assert result["hourly_rate"] == 115
        assert result["subtotal"] == 690
        assert result["tax"] == pytest.approx(62.79)
        assert result["total"] == pytest.approx(752.79)
        assert result["day_type"] == "Thu-Sat"
        assert result["rate_tier"] == "5-6 guests"

    def test_short_tour_is_billed_at_day_minimum(self):
        result = calculate_wine_tour_price(2, 2, SUNDAY)

        assert result["hours"] == 4
        assert result["subtotal"] == 340

        weekend = calculate_wine_tour_price(2, 2, SATURDAY)
        assert weekend["hours"] == 5
        assert weekend["subtotal"] == 475

    def test_party_larger_than_vehicle_is_rejected(self):
        with pytest.raises(PricingError):
            calculate_wine_tour_price(6, 15, WEDNESDAY)

    def test_day_type_labels(self):
        assert get_day_type(WEDNESDAY) == "Sun-Wed"
        assert get_day_type(SATURDAY) == "Thu-Sat"


class TestOtherServices:
    def test_shared_tour_with_lunch(self):
        result = calculate_shared_tour_price(4, MONDAY)
        assert result["price_per_person"] == 115
        assert result["subtotal"] == 460

    def test_shared_tour_not_offered_thursday(self):
        with pytest.raises(PricingError):
            calculate_shared_tour_price(4, THURSDAY)

    def test_local_transfer_charges_beyond_included_miles(self):
        result = calculate_transfer_price("local", 25)
        assert result["subtotal"] == 145
        assert result["quote_required"] is False

    def test_unpriced_airport_route_needs_quote(self):
        assert calculate_transfer_price("pasco_to_walla")["quote_required"] is True
        assert calculate_transfer_price("seatac_to_walla")["subtotal"] == 850

    def test_unknown_route_is_rejected(self):
        with pytest.raises(PricingError):
            calculate_transfer_price("moon_to_walla")

    def test_wait_time_has_one_hour_minimum(self):
        result = calculate_wait_time_price(0.5, 6, SATURDAY)
        assert result["hours"] == 1
        assert result["subtotal"] == 105


class TestProcessingFees:
    def test_card_fee_is_percentage_plus_fixed(self):
        assert calculate_processing_fee(100, "card") == pytest.approx(3.20)

    def test_ach_fee_is_capped(self):
        assert calculate_processing_fee(1000, "ach") == pytest.approx(5.00)
        assert calculate_processing_fee(100, "ach") == pytest.approx(0.80)

    def test_check_is_free(self):
        assert calculate_processing_fee(500, "check") == 0

    def test_unknown_method_is_rejected(self):
        with pytest.raises(PricingError):
            calculate_processing_fee(100, "bitcoin")

    def test_payment_amounts_split_deposit_and_balance(self):
        result = calculate_payment_amounts(1000, "card")
        assert result["deposit_amount"] == 500
        assert result["processing_fee"] == pytest.approx(14.80)
        assert result["charge_total"] == pytest.approx(514.80)
        assert result["balance_after_deposit"] == 500


class TestMultiDayQuote:
    def test_days_are_priced_in_date_order_with_running_total(self):
        quote = calculate_multi_day_quote(
            2,
            [
                {"date": MONDAY, "services": [{"type": "transfer", "route": "seatac_to_walla"}]},
                {"date": SUNDAY, "services": [{"type": "wine_tour", "hours": 4}]},
            ],
        )

        first, second = quote["days"]
        assert first["date"] == "2030-01-06"
        assert first["total"] == pytest.approx(370.94)
        assert first["running_total"] == pytest.approx(370.94)
        assert second["day_number"] == 2
        assert second["running_total"] == pytest.approx(1298.29)
        assert quote["total"] == pytest.approx(1298.29)
        assert quote["deposit_amount"] == pytest.approx(649.15, abs=0.01)

    def test_duplicate_days_are_rejected(self):
        with pytest.raises(PricingError, match="Duplicate"):
            calculate_multi_day_quote(
                2,
                [
                    {"date": SUNDAY, "services": [{"type": "wine_tour", "hours": 4}]},
                    {"date": SUNDAY, "services": [{"type": "wine_tour", "hours": 5}]},
                ],
            )

    def test_day_without_services_is_rejected(self):
        with pytest.raises(PricingError):
            calculate_multi_day_quote(2, [{"date": SUNDAY, "services": []}])

    def test_custom_service_uses_given_amount(self):
        line = price_service({"type": "custom", "amount": 120, "description": "Picnic"}, 4, SUNDAY)
        assert line["subtotal"] == 120
        assert line["description"] == "Picnic"


class TestProposalPricing:
    def test_percentage_planning_fee_discount_and_tax(self):
        inclusions = [
            {"inclusion_type": "wine_tour", "unit_price": 100, "pricing_type": "per_person"},
            {
                "inclusion_type": "custom",
                "unit_price": 50,
                "quantity": 2,
                "pricing_type": "flat",
                "is_taxable": False,
            },
            {"inclusion_type": "planning_fee", "unit_price": 0, "quantity": 1, "pricing_type": "flat"},
        ]

        result = calculate_proposal_pricing(
            inclusions,
            party_size=4,
            tax_rate=0.1,
            discount_percentage=10,
            planning_fee_mode="percentage",
            planning_fee_percentage=10,
        )

        assert result["line_totals"] == [400, 100, 50]
        assert result["planning_fee_unit_price"] == 50
        assert result["subtotal"] == 550
        assert result["discount_amount"] == 55
        assert result["taxes"] == pytest.approx(40.5)
        assert result["total"] == pytest.approx(535.5)
        assert result["deposit_amount"] == pytest.approx(267.75)
        assert result["balance_due"] == pytest.approx(535.5)

    def test_balance_due_drops_deposit_once_paid(self):
        inclusions = [{"unit_price": 200, "quantity": 1, "pricing_type": "flat"}]
        result = calculate_proposal_pricing(inclusions, party_size=2, tax_rate=0, deposit_paid=True)

        assert result["total"] == 200
        assert result["balance_due"] == 100

    def test_tax_included_lines_are_not_taxed_again(self):
        inclusions = [{"unit_price": 100, "quantity": 1, "tax_included_in_price": True}]
        result = calculate_proposal_pricing(inclusions, party_size=2, tax_rate=0.091)
        assert result["taxes"] == 0

    def test_flat_line_without_quantity_counts_once(self):
        assert calculate_line_total({"unit_price": 75, "pricing_type": "flat"}, party_size=6) == 75
        assert calculate_line_total({"unit_price": 75, "quantity": None}, party_size=6) == 75
        assert calculate_line_total({"unit_price": 75, "quantity": 3}, party_size=6) == 225
        assert calculate_line_total({"unit_price": 20, "pricing_type": "per_person"}, party_size=6) == 120
