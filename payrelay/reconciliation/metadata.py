"""
Transaction metadata helpers.

Paystack echoes back the metadata we send at initialization, either as a
JSON string or as an object, with our donor details in ``custom_fields``.
Everything that reads or merges metadata goes through this module so that
webhook and verify treat it identically.
"""

import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

SECONDARY_AMOUNT_KEY = "originalAmountUSD"
SECONDARY_AMOUNT_FIELD = "original_amount_usd"

CUSTOM_FIELDS = (
    ("First Name", "first_name"),
    ("Last Name", "last_name"),
    ("Phone", "phone"),
    ("Donation Type", "donation_type"),
    ("Original Amount USD", SECONDARY_AMOUNT_FIELD),
)

Number = Union[int, float]


def parse_metadata(raw: Any) -> Dict[str, Any]:
    """Return metadata as a dict whatever shape it arrived in."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, (str, bytes)):
        try:
            parsed = json.loads(raw)
        except ValueError as e:
            logger.error("Error parsing metadata", extra={"error": str(e)})
            return {}
        return dict(parsed) if isinstance(parsed, Mapping) else {}
    return {}


def custom_field(metadata: Mapping[str, Any], variable_name: str) -> Any:
    fields = metadata.get("custom_fields") or []
    if not isinstance(fields, list):
        return None
    for field in fields:
        if isinstance(field, Mapping) and field.get("variable_name") == variable_name:
            return field.get("value")
    return None


def _as_number(value: Any) -> Optional[Number]:
    """Positive numeric value, or None. Zero counts as absent."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if value > 0 else None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        logger.warning("Ignoring non-numeric secondary amount", extra={"value": str(value)})
        return None
    if not number.is_finite() or number <= 0:
        return None
    return int(number) if number == number.to_integral_value() else float(number)


def extract_secondary_amount(raw_metadata: Any) -> Optional[Number]:
    metadata = parse_metadata(raw_metadata)
    amount = _as_number(custom_field(metadata, SECONDARY_AMOUNT_FIELD))
    if amount is None:
        amount = _as_number(metadata.get(SECONDARY_AMOUNT_KEY))
    return amount


def extract_names(raw_metadata: Any) -> Tuple[str, str]:
    metadata = parse_metadata(raw_metadata)
    first_name = custom_field(metadata, "first_name") or ""
    last_name = custom_field(metadata, "last_name") or ""
    return str(first_name), str(last_name)


def merge_metadata(stored: Any, incoming: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Merge ``incoming`` over ``stored`` and return a new dict.

    An incoming value wins unless it is None, in which case the stored
    value is kept. Keys only present in ``stored`` are always kept.
    """
    merged = parse_metadata(stored)
    for key, value in (incoming or {}).items():
        if value is not None:
            merged[key] = value
    return merged


def merge_secondary_amount(stored: Any, event_metadata: Any) -> Dict[str, Any]:
    """Stored metadata with the secondary amount from the provider event folded in."""
    amount = extract_secondary_amount(event_metadata)
    if amount is None:
        logger.debug("No secondary amount in provider metadata, keeping stored value")
    return merge_metadata(stored, {SECONDARY_AMOUNT_KEY: amount})


def build_provider_metadata(
    first_name: str = "",
    last_name: str = "",
    phone: str = "",
    donation_type: Optional[str] = None,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Metadata sent to Paystack at initialization and stored on the record."""
    metadata = dict(metadata or {})
    secondary_amount = metadata.get(SECONDARY_AMOUNT_KEY) or 0
    values = {
        "first_name": first_name or "",
        "last_name": last_name or "",
        "phone": phone or "",
        "donation_type": donation_type,
        SECONDARY_AMOUNT_FIELD: secondary_amount,
    }

    full = {
        "custom_fields": [
            {"display_name": display, "variable_name": variable, "value": values[variable]}
            for display, variable in CUSTOM_FIELDS
        ],
        SECONDARY_AMOUNT_KEY: secondary_amount,
    }
    full.update(metadata)
    return full
