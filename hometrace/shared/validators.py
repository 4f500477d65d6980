"""Shared validation utilities"""

import re
from datetime import date, datetime, time
from typing import Optional

# Business hours for viewings: 09:00 through 18:45 in 15-minute steps
BUSINESS_START_HOUR = 9
BUSINESS_END_HOUR = 18
QUARTER_HOUR_MINUTES = (0, 15, 30, 45)
MAX_CANDIDATE_TIMES = 3

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate a customer phone number.

    Accepts local or international formats; only the digit count is checked.

    Raises:
        ValueError: If the number has fewer than 8 or more than 15 digits
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)
    if len(digits) < 8 or len(digits) > 15:
        raise ValueError("Phone number must contain between 8 and 15 digits")

    return phone.strip()


def parse_candidate_date(value: str, position: Optional[int] = None) -> date:
    """Parse a YYYY-MM-DD candidate date"""
    suffix = f" for item {position}" if position else ""
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise ValueError(f"Invalid date format{suffix}. Expected YYYY-MM-DD format")
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValueError(f"Invalid date{suffix}: {value}") from e


def parse_candidate_time(value: str, position: Optional[int] = None) -> time:
    """
    Parse an HH:MM candidate time restricted to quarter hours within business hours.

    Raises:
        ValueError: On malformed input, off-grid minutes or hours outside 9:00-18:45
    """
    suffix = f" for item {position}" if position else ""
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise ValueError(f"Invalid time format{suffix}. Expected HH:MM format")

    hours, minutes = (int(part) for part in value.split(":"))
    if minutes not in QUARTER_HOUR_MINUTES:
        raise ValueError(
            f"Invalid time{suffix}. Time must be in 15-minute intervals (e.g., 10:00, 10:15, 10:30, 10:45)"
        )
    if hours < BUSINESS_START_HOUR or hours > BUSINESS_END_HOUR:
        raise ValueError(f"Invalid time{suffix}. Time must be between 9:00 AM and 6:00 PM")

    return time(hours, minutes)


def validate_candidate_times(candidates: list[dict], require_at_least_one: bool = True) -> list[dict]:
    """
    Validate a list of {"date", "time"} candidate entries.

    Returns:
        The normalized list (only date/time keys kept)
    """
    if not isinstance(candidates, list):
        raise ValueError("customerPreferredDates must be an array")
    if require_at_least_one and not candidates:
        raise ValueError("At least one preferred date is required")
    if len(candidates) > MAX_CANDIDATE_TIMES:
        raise ValueError(f"A maximum of {MAX_CANDIDATE_TIMES} preferred dates is allowed")

    normalized = []
    for index, candidate in enumerate(candidates, start=1):
        if not candidate or not candidate.get("date") or not candidate.get("time"):
            raise ValueError(f"Each preferred date must have date and time. Issue with item {index}")
        parse_candidate_date(candidate["date"], index)
        parse_candidate_time(candidate["time"], index)
        normalized.append({"date": candidate["date"], "time": candidate["time"]})
    return normalized


def candidate_to_datetime(candidate: dict) -> datetime:
    """Combine a candidate's date and time into a naive wall-clock datetime"""
    day = date.fromisoformat(candidate["date"])
    hours, minutes = (int(part) for part in candidate["time"].split(":"))
    return datetime(day.year, day.month, day.day, hours, minutes)
