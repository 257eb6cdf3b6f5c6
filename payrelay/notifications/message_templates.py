# payrelay/notifications/message_templates.py
from datetime import datetime
from decimal import Decimal

from payrelay.reconciliation.metadata import SECONDARY_AMOUNT_KEY, parse_metadata

STATUS_GLYPHS = {
    "initiated": "🟡",
    "pending": "🟡",
    "completed": "🟢",
    "success": "🟢",
    "failed": "🔴",
    "abandoned": "⚫",
}
DEFAULT_GLYPH = "⚪"


def status_glyph(status_label: str) -> str:
    """Glyph for the leading status word, so "completed (via Webhook)" is green."""
    words = (status_label or "").strip().split()
    return STATUS_GLYPHS.get(words[0].lower(), DEFAULT_GLYPH) if words else DEFAULT_GLYPH


def format_amount(amount) -> str:
    if amount is None:
        return "0"
    value = Decimal(str(amount))
    if value == value.to_integral_value():
        return f"{int(value):,}"
    return f"{value:,.2f}"


def format_timestamp(moment: datetime) -> str:
    return f"{moment:%B} {moment.day}, {moment.year} at {moment:%I:%M:%S %p}"


def format_notification_message(
    transaction,
    status_label: str,
    moment: datetime,
    timezone_label: str = "WAT",
    currency_symbol: str = "₦",
) -> str:
    """Admin alert text in the messaging relay's bold-asterisk markup."""
    metadata = parse_metadata(transaction.meta)
    secondary_amount = metadata.get(SECONDARY_AMOUNT_KEY) or 0

    amount_line = f"*Amount:* {currency_symbol}{format_amount(transaction.amount)}"
    try:
        if Decimal(str(secondary_amount)) > 0:
            amount_line += f" (${format_amount(secondary_amount)})"
    except ArithmeticError:
        pass

    full_name = f"{transaction.first_name or ''} {transaction.last_name or ''}".strip()

    lines = [
        f"{status_glyph(status_label)} *Payment {status_label.upper()}*",
        "",
        f"*Reference:* {transaction.reference}",
        amount_line,
        f"*Email:* {transaction.email}",
        f"*Name:* {full_name or 'N/A'}",
        f"*Phone:* {transaction.phone or 'N/A'}",
        f"*Donation Type:* {transaction.donation_type or 'One-time'}",
        "",
        f"*Time:* {format_timestamp(moment)} ({timezone_label})",
    ]
    return "\n".join(lines)
