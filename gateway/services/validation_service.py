"""
Payment method input validation.

Every validator returns a result dict: ``{"valid": True, ...}`` on success or
``{"valid": False, "error": <message>}`` on failure. ``validate_card`` also
tags failures with the error ``code`` the caller reports to the client.
"""
import re
from datetime import date
from typing import Any, Dict, Optional

VPA_PATTERN = re.compile(r"[a-zA-Z0-9._-]+@[a-zA-Z0-9]+")
_CARD_SEPARATORS = re.compile(r"[\s-]")

INVALID_VPA = "INVALID_VPA"
INVALID_CARD = "INVALID_CARD"
EXPIRED_CARD = "EXPIRED_CARD"


def validate_vpa(vpa: Any) -> Dict[str, Any]:
    if not vpa or not isinstance(vpa, str):
        return {"valid": False, "error": "VPA is required"}

    if not VPA_PATTERN.fullmatch(vpa):
        return {
            "valid": False,
            "error": "Invalid VPA format. VPA must be in format: username@bank",
        }
    return {"valid": True}


def _clean_card_number(card_number: str) -> str:
    return _CARD_SEPARATORS.sub("", card_number)


def luhn_checksum_ok(digits: str) -> bool:
    """Luhn check over a string of digits."""
    total = 0
    for position, char in enumerate(reversed(digits)):
        digit = int(char)
        if position % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def validate_card_number(card_number: Any) -> Dict[str, Any]:
    if not card_number or not isinstance(card_number, str):
        return {"valid": False, "error": "Card number is required"}

    cleaned = _clean_card_number(card_number)
    if not cleaned.isascii() or not cleaned.isdigit():
        return {"valid": False, "error": "Card number must contain only digits"}

    if len(cleaned) < 13 or len(cleaned) > 19:
        return {"valid": False, "error": "Card number must be between 13 and 19 digits"}

    if not luhn_checksum_ok(cleaned):
        return {"valid": False, "error": "Invalid card number"}
    return {"valid": True}


def detect_card_network(card_number: Optional[str]) -> str:
    if not card_number:
        return "unknown"

    cleaned = _clean_card_number(card_number)
    first_two = cleaned[:2]
    first_two_num = int(first_two) if len(first_two) == 2 and first_two.isdigit() else -1

    if cleaned.startswith("4"):
        return "visa"
    if 51 <= first_two_num <= 55:
        return "mastercard"
    if first_two in ("34", "37"):
        return "amex"
    if first_two in ("60", "65") or 81 <= first_two_num <= 89:
        return "rupay"
    return "unknown"


def _parse_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def validate_expiry(month: Any, year: Any, today: Optional[date] = None) -> Dict[str, Any]:
    """Expiry is compared at month granularity; the current month is still valid."""
    if month in (None, "") or year in (None, ""):
        return {"valid": False, "error": "Expiry month and year are required"}

    month_num = _parse_int(month)
    if month_num is None or month_num < 1 or month_num > 12:
        return {"valid": False, "error": "Invalid expiry month"}

    year_num = _parse_int(year)
    if year_num is None:
        return {"valid": False, "error": "Invalid expiry year"}
    if year_num < 100:
        year_num += 2000

    today = today or date.today()
    if (year_num, month_num) < (today.year, today.month):
        return {"valid": False, "error": "Card has expired"}
    return {"valid": True}


def validate_cvv(cvv: Any) -> Dict[str, Any]:
    # Length 3 or 4 is accepted for every network, amex included.
    if not cvv or not isinstance(cvv, str):
        return {"valid": False, "error": "CVV is required"}

    cleaned = re.sub(r"\s", "", cvv)
    if not cleaned.isascii() or not cleaned.isdigit():
        return {"valid": False, "error": "CVV must contain only digits"}

    if len(cleaned) not in (3, 4):
        return {"valid": False, "error": "Invalid CVV length"}
    return {"valid": True}


def card_last4(card_number: Optional[str]) -> Optional[str]:
    if not card_number:
        return None
    return _clean_card_number(card_number)[-4:]


def validate_card(card: Any, today: Optional[date] = None) -> Dict[str, Any]:
    if not card or not isinstance(card, dict):
        return {"valid": False, "error": "Card details are required", "code": INVALID_CARD}

    number = card.get("number")
    number_result = validate_card_number(number)
    if not number_result["valid"]:
        return {"valid": False, "error": number_result["error"], "code": INVALID_CARD}

    card_network = detect_card_network(number)

    expiry_result = validate_expiry(card.get("expiry_month"), card.get("expiry_year"), today=today)
    if not expiry_result["valid"]:
        return {"valid": False, "error": expiry_result["error"], "code": EXPIRED_CARD}

    cvv_result = validate_cvv(card.get("cvv"))
    if not cvv_result["valid"]:
        return {"valid": False, "error": cvv_result["error"], "code": INVALID_CARD}

    holder_name = card.get("holder_name")
    if not isinstance(holder_name, str) or not holder_name.strip():
        return {"valid": False, "error": "Card holder name is required", "code": INVALID_CARD}

    return {
        "valid": True,
        "card_network": card_network,
        "card_last4": card_last4(number),
    }
