"""
ChatGPT Actions API
Public endpoints the Walla Walla Travel GPT calls to search wineries, check
availability, recommend itineraries, look up bookings and take inquiries.
Every response is plain JSON with a human-friendly "message" for the model to relay.
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field
from sqlalchemy.orm import Session

from ..config import PUBLIC_BASE_URL
from ..database import get_db
from ..domain.availability.service import AvailabilityService
from ..domain.bookings.repository import BookingRepository
from ..domain.inquiries.schemas import InquiryCreate
from ..domain.inquiries.service import InquiryService
from ..domain.wineries.service import WineryService, classify_styles, serialize_winery
from ..models import Winery
from ..rate_limiter import gpt_rate_limit
from ..services.rate_config import (
    MAX_PARTY_SIZE,
    SHARED_TOUR,
    calculate_shared_tour_price,
    calculate_wine_tour_price,
    get_minimum_hours,
    is_shared_tour_day,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/gpt", tags=["GPT Actions"])

GPT_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

DEFAULT_SEARCH_LIMIT = 10
MAX_SEARCH_LIMIT = 25
NEXT_AVAILABLE_WINDOW_DAYS = 30
TOUR_START_TIMES = ["10:00 AM", "11:00 AM", "12:00 PM"]

DEFAULT_STOPS = 3
MIN_STOPS = 2
MAX_STOPS = 5
MAX_RECOMMENDATIONS = 10
ITINERARY_START = "11:00"
TRAVEL_MINUTES = 15

ATMOSPHERE_KEYWORDS = {
    "intimate": ["intimate", "boutique", "small", "cozy", "family"],
    "lively": ["lively", "vibrant", "music", "events", "social"],
    "rustic": ["rustic", "barn", "farm", "historic", "country"],
    "modern": ["modern", "contemporary", "sleek", "architect"],
}
PRICE_RANGES = {
    "budget": (0, 20),
    "moderate": (15, 35),
    "premium": (30, 60),
    "luxury": (50, None),
}


def gpt_response(content: dict[str, Any], status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=GPT_CORS_HEADERS)


def gpt_error(message: str, status_code: int) -> JSONResponse:
    return gpt_response({"success": False, "message": message}, status_code)


@router.options("/{action}", include_in_schema=False)
async def preflight(action: str):
    return Response(status_code=200, headers=GPT_CORS_HEADERS)


# ============================================================================
# SEARCH WINERIES
# ============================================================================


@router.get("/search-wineries", operation_id="searchWineries", summary="Search for wineries")
async def search_wineries(
    query: Optional[str] = Query(None, description='Winery name, wine type (e.g. "Cabernet") or feature'),
    style: Optional[Literal["red", "white", "mixed", "sparkling"]] = Query(None),
    limit: Optional[int] = Query(None, description="Maximum results (default 10, max 25)"),
    _: None = Depends(gpt_rate_limit),
    db: Session = Depends(get_db),
):
    """Search Walla Walla wineries by name, wine style or features"""
    limit = min(max(limit or DEFAULT_SEARCH_LIMIT, 1), MAX_SEARCH_LIMIT)
    try:
        wineries = WineryService(db).search(query, style, limit)
    except HTTPException as e:
        return gpt_error(str(e.detail), e.status_code)

    if not wineries:
        message = "I couldn't find any wineries matching that search. Try broadening it"
        message += " with a different wine style or a more general term." if (query or style) else "."
    else:
        noun = "winery" if len(wineries) == 1 else "wineries"
        filters = []
        if query:
            filters.append(f'matching "{query}"')
        if style:
            filters.append(f"pouring {style} wines")
        message = f"Found {len(wineries)} {noun}{' ' + ' and '.join(filters) if filters else ''} in Walla Walla."

    return gpt_response({"success": True, "message": message, "wineries": wineries, "total": len(wineries)})


# ============================================================================
# CHECK AVAILABILITY
# ============================================================================


def _tour_options(tour_date: date, party_size: int) -> list[dict[str, Any]]:
    minimum_hours = get_minimum_hours(tour_date)
    private = calculate_wine_tour_price(minimum_hours, party_size, tour_date)
    options = [
        {
            "tour_type": "private_wine_tour",
            "name": "Private Wine Tour",
            "description": f"Your own chauffeured tour of Walla Walla wineries ({minimum_hours}-hour minimum)",
            "duration_hours": minimum_hours,
            "price_per_person": round(private["total"] / party_size, 2),
            "total_price": private["total"],
            "includes": ["Private vehicle and driver", "Custom winery itinerary", "Bottled water"],
            "available_times": TOUR_START_TIMES,
        }
    ]
    if is_shared_tour_day(tour_date) and party_size <= SHARED_TOUR["max_guests"]:
        shared = calculate_shared_tour_price(party_size, tour_date)
        options.append(
            {
                "tour_type": "shared_tour",
                "name": "Shared Wine Tour",
                "description": "Join other guests on a small-group tour with lunch (Sunday through Wednesday)",
                "duration_hours": 6,
                "price_per_person": shared["price_per_person"],
                "total_price": shared["total"],
                "includes": ["Shared vehicle and driver", "Lunch", "Three winery visits"],
                "available_times": ["11:00 AM"],
            }
        )
    return options


def _next_available_date(availability: AvailabilityService, after: date, party_size: int) -> Optional[str]:
    for offset in range(1, NEXT_AVAILABLE_WINDOW_DAYS + 1):
        candidate = after + timedelta(days=offset)
        if availability.has_open_vehicle(candidate, party_size):
            return candidate.isoformat()
    return None


@router.get("/check-availability", operation_id="checkAvailability", summary="Check tour availability")
async def check_availability(
    date: str = Query(..., description="Tour date in YYYY-MM-DD format"),
    party_size: int = Query(..., description="Number of guests (1-14)"),
    _: None = Depends(gpt_rate_limit),
    db: Session = Depends(get_db),
):
    """Availability and pricing for a date and party size"""
    if not re.fullmatch(r"\d{4}-\d{2}-\d{2}", date or ""):
        return gpt_error("Please provide the date in YYYY-MM-DD format.", 400)
    try:
        tour_date = datetime.strptime(date, "%Y-%m-%d").date()
    except ValueError:
        return gpt_error("Please provide a valid date in YYYY-MM-DD format.", 400)

    if tour_date < datetime.utcnow().date():
        return gpt_error("That date is in the past. Please choose an upcoming date.", 400)
    if party_size < 1 or party_size > MAX_PARTY_SIZE:
        return gpt_error(f"Party size must be between 1 and {MAX_PARTY_SIZE} guests.", 400)

    availability = AvailabilityService(db)
    available = availability.has_open_vehicle(tour_date, party_size)
    date_label = tour_date.strftime("%A, %B %d, %Y")

    if available:
        tour_options = _tour_options(tour_date, party_size)
        next_available = None
        message = f"Great news! We have availability on {date_label} for {party_size} guests."
    else:
        tour_options = []
        next_available = _next_available_date(availability, tour_date, party_size)
        message = f"Unfortunately we're fully booked on {date_label} for a party of {party_size}."
        if next_available:
            message += f" The next available date is {next_available}."
        else:
            message += " Please contact us and we'll do our best to help."

    return gpt_response(
        {
            "success": True,
            "message": message,
            "date": tour_date.isoformat(),
            "party_size": party_size,
            "available": available,
            "tour_options": tour_options,
            "next_available_date": next_available,
        }
    )


# ============================================================================
# RECOMMENDATIONS
# ============================================================================


class RecommendationPreferences(BaseModel):
    wine_styles: list[str] = Field(default_factory=list)
    atmosphere: Optional[Literal["intimate", "lively", "rustic", "modern", "any"]] = None
    features: list[str] = Field(default_factory=list)
    price_range: Optional[Literal["budget", "moderate", "premium", "luxury"]] = None


class RecommendationRequest(BaseModel):
    preferences: RecommendationPreferences = Field(default_factory=RecommendationPreferences)
    party_size: Optional[int] = Field(None, ge=1, le=MAX_PARTY_SIZE)
    tour_date: Optional[date] = Field(None, validation_alias=AliasChoices("tour_date", "date"))
    num_stops: Optional[int] = Field(None, validation_alias=AliasChoices("num_stops", "number_of_stops"))


def _style_match(style: str, winery: Winery) -> Optional[str]:
    wanted = style.strip().lower()
    if not wanted:
        return None
    for specialty in winery.specialties or []:
        if wanted in specialty.lower() or specialty.lower() in wanted:
            return specialty
    # "bold red", "crisp white" and the like
    for broad in classify_styles(winery.specialties):
        if broad in wanted.split():
            return f"{broad} wines"
    return None


def score_winery(winery: Winery, preferences: RecommendationPreferences) -> tuple[int, list[str]]:
    """Match score out of 100 with the reasons behind it"""
    score = 50
    reasons = []

    for style in preferences.wine_styles:
        matched = _style_match(style, winery)
        if matched:
            score += 15
            reasons.append(f"Known for {matched}")
            break

    features = [f.lower() for f in winery.features or []]
    for wanted in preferences.features:
        if any(wanted.strip().lower() in feature for feature in features):
            score += 10
            reasons.append(f"Offers {wanted.strip()}")
            break

    atmosphere = preferences.atmosphere
    if atmosphere and atmosphere != "any":
        description = (winery.description or "").lower()
        if any(keyword in description for keyword in ATMOSPHERE_KEYWORDS[atmosphere]):
            score += 10
            reasons.append(f"{atmosphere.capitalize()} atmosphere")

    if preferences.price_range and winery.tasting_fee is not None:
        low, high = PRICE_RANGES[preferences.price_range]
        if winery.tasting_fee >= low and (high is None or winery.tasting_fee <= high):
            score += 10
            reasons.append(f"${winery.tasting_fee:.0f} tasting fee fits a {preferences.price_range} budget")

    if not reasons:
        reasons.append("Featured Walla Walla winery" if winery.is_featured else "Well-regarded Walla Walla winery")

    return min(score, 100), reasons


def _format_clock(minutes: int) -> str:
    return (datetime.min + timedelta(minutes=minutes)).strftime("%I:%M %p").lstrip("0")


def build_itinerary(wineries: list[Winery], party_size: int, tour_date: date) -> dict[str, Any]:
    """Timed stops from 11:00 AM with travel between wineries, and a per-person cost estimate"""
    hour, minute = (int(part) for part in ITINERARY_START.split(":"))
    start = current = hour * 60 + minute
    stops = []
    tasting_fees = 0.0

    for order, winery in enumerate(wineries, start=1):
        duration = winery.average_visit_duration or 60
        stops.append(
            {
                "order": order,
                "winery_name": winery.name,
                "arrival_time": _format_clock(current),
                "duration_minutes": duration,
            }
        )
        tasting_fees += winery.tasting_fee or 0
        current += duration + TRAVEL_MINUTES

    total_minutes = max(current - TRAVEL_MINUTES - start, 0)
    total_hours = round(total_minutes / 60, 1)
    transport = calculate_wine_tour_price(max(total_hours, 1), party_size, tour_date)

    return {
        "total_duration_hours": total_hours,
        "estimated_cost_per_person": round(tasting_fees + transport["total"] / party_size, 2),
        "stops": stops,
    }


@router.post("/get-recommendations", operation_id="getRecommendations", summary="Get winery recommendations")
async def get_recommendations(
    data: RecommendationRequest,
    _: None = Depends(gpt_rate_limit),
    db: Session = Depends(get_db),
):
    """Rank wineries against the guest's preferences and suggest an itinerary"""
    try:
        wineries = db.query(Winery).filter(Winery.is_active.is_(True)).order_by(Winery.name).all()

        scored = []
        for winery in wineries:
            score, reasons = score_winery(winery, data.preferences)
            scored.append((score, winery, reasons))
        scored.sort(key=lambda item: (-item[0], item[1].name))

        recommendations = [
            {"winery": serialize_winery(winery), "match_score": score, "match_reasons": reasons}
            for score, winery, reasons in scored[:MAX_RECOMMENDATIONS]
        ]

        num_stops = min(max(data.num_stops or DEFAULT_STOPS, MIN_STOPS), MAX_STOPS, len(scored))
        itinerary = build_itinerary(
            [winery for _, winery, _ in scored[:num_stops]],
            data.party_size or 2,
            data.tour_date or datetime.utcnow().date(),
        )

        if recommendations:
            top = recommendations[0]["winery"]["name"]
            message = (
                f"Here are {len(recommendations)} wineries picked for you. {top} is the strongest match, "
                f"and I've put together a {len(itinerary['stops'])}-stop itinerary."
            )
        else:
            message = "I don't have any wineries to recommend right now. Please contact us for help planning."

        return gpt_response(
            {
                "success": True,
                "message": message,
                "recommendations": recommendations,
                "suggested_itinerary": itinerary,
            }
        )
    except Exception as e:
        logger.error(f"❌ GPT recommendations failed: {e}")
        return gpt_error("Unable to generate recommendations right now. Please try again shortly.", 500)


# ============================================================================
# BOOKING STATUS
# ============================================================================


def _format_start_time(start_time: Optional[str]) -> Optional[str]:
    if not start_time:
        return None
    try:
        return datetime.strptime(start_time, "%H:%M").strftime("%I:%M %p").lstrip("0")
    except ValueError:
        return start_time


def booking_status_message(booking, tour_time: Optional[str]) -> str:
    date_label = booking.tour_date.strftime("%A, %B %d, %Y")
    number = booking.booking_number
    driver = booking.driver.name if booking.driver else None

    if booking.status == "confirmed":
        message = f"Your booking {number} is confirmed for {date_label}."
        if tour_time:
            message += f" Pickup is at {tour_time}"
            message += f" from {booking.pickup_location}." if booking.pickup_location else "."
        if driver:
            message += f" Your driver will be {driver}."
        return message
    if booking.status == "pending":
        message = (
            f"Your booking {number} for {date_label} is pending. "
            "We'll confirm it once your deposit has been received."
        )
        if driver:
            message += f" {driver} has been assigned as your driver."
        return message
    if booking.status == "completed":
        return f"Your tour on {date_label} has been completed. Thank you for touring Walla Walla with us!"
    if booking.status == "cancelled":
        return f"Booking {number} for {date_label} has been cancelled. Contact us if you'd like to rebook."
    return f"Booking {number} for {date_label} is currently {booking.status}."


@router.get("/booking-status", operation_id="getBookingStatus", summary="Get booking status")
async def booking_status(
    booking_number: Optional[str] = Query(None, description="Booking number, e.g. WWT-2025-123456"),
    email: Optional[str] = Query(None, description="Email address used for the booking"),
    _: None = Depends(gpt_rate_limit),
    db: Session = Depends(get_db),
):
    """Look up a booking by number or by the customer's email (most recent booking)"""
    if not (booking_number or "").strip() and not (email or "").strip():
        return gpt_error("Please provide your booking number or the email address used for the booking.", 400)

    try:
        repo = BookingRepository()
        if booking_number and booking_number.strip():
            booking = repo.get_by_number(db, booking_number)
        else:
            booking = repo.get_latest_by_email(db, email)

        if not booking:
            return gpt_error(
                "We couldn't find a booking with those details. Please double-check and try again.", 404
            )

        total_paid = repo.total_paid(db, booking.id)
        tour_time = _format_start_time(booking.start_time)
        payload = {
            "booking_number": booking.booking_number,
            "status": booking.status,
            "tour_date": booking.tour_date.isoformat(),
            "tour_time": tour_time,
            "party_size": booking.party_size,
            "pickup_location": booking.pickup_location,
            "wineries": [stop.winery.name for stop in booking.stops if stop.winery],
            "driver_name": booking.driver.name if booking.driver else None,
            "driver_phone": booking.driver.phone if booking.driver else None,
            "total_paid": round(total_paid, 2),
            "balance_due": round(max((booking.total_amount or 0) - total_paid, 0), 2),
        }
        return gpt_response(
            {"success": True, "message": booking_status_message(booking, tour_time), "booking": payload}
        )
    except Exception as e:
        logger.error(f"❌ GPT booking lookup failed: {e}")
        return gpt_error("Unable to look up your booking right now. Please try again shortly.", 500)


# ============================================================================
# INQUIRIES
# ============================================================================


class GptInquiryCreate(InquiryCreate):
    tour_date: date
    party_size: int = Field(..., ge=1, le=MAX_PARTY_SIZE)


@router.post("/create-inquiry", operation_id="createInquiry", summary="Create a booking inquiry", status_code=201)
async def create_inquiry(
    data: GptInquiryCreate,
    _: None = Depends(gpt_rate_limit),
    db: Session = Depends(get_db),
):
    inquiry = await InquiryService(db).create_inquiry(data, source="chatgpt")
    return gpt_response(
        {
            "success": True,
            "message": (
                f"Thanks, {inquiry.name}! Your inquiry for {inquiry.party_size} guests on "
                f"{inquiry.tour_date.strftime('%B %d, %Y')} has been received. "
                f"Our team will follow up at {inquiry.email}."
            ),
            "inquiry_id": inquiry.inquiry_number,
            "estimated_response_time": "within 24 hours",
        },
        status_code=201,
    )


# ============================================================================
# OPENAPI
# ============================================================================


@router.get("/openapi", include_in_schema=False)
async def gpt_openapi():
    """OpenAPI document for the GPT Actions above"""
    schema = get_openapi(
        title="Walla Walla Wine Tours API",
        version="1.0.0",
        openapi_version="3.1.0",
        description=(
            "Explore and book wine tours in the Walla Walla Valley: search wineries, check availability, "
            "get recommendations, look up bookings and send inquiries."
        ),
        routes=router.routes,
        servers=[{"url": PUBLIC_BASE_URL}],
    )
    return gpt_response(schema)
