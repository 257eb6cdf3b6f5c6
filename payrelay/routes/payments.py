import json
import logging

from flask import Blueprint, current_app, jsonify, request

from payrelay.errors import StorageFault, ValidationError
from payrelay.reconciliation.engine import Outcome, ReconciliationEngine
from payrelay.security.paystack_webhook import SIGNATURE_HEADER, verify_paystack_signature

logger = logging.getLogger(__name__)

payments_bp = Blueprint("payments", __name__, url_prefix="/payments")


def get_engine() -> ReconciliationEngine:
    return current_app.extensions["payrelay"]


@payments_bp.route("/initialize", methods=["POST"])
def initialize_payment():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    logger.info(
        "Initialize payload received",
        extra={"email": payload.get("email"), "amount": payload.get("amount")},
    )
    result = get_engine().initialize(payload)

    return jsonify({
        "success": True,
        "message": "Payment initialized successfully",
        "data": result.provider_data,
    })


@payments_bp.route("/webhook", methods=["POST"])
def paystack_webhook():
    """
    Paystack retries until it gets a 200, so a 200 is only sent once the
    event has been fully written.
    """
    payload = request.get_data()
    signature = request.headers.get(SIGNATURE_HEADER)

    if not verify_paystack_signature(payload, signature, current_app.config.get("PAYSTACK_SECRET_KEY")):
        logger.error("Webhook signature failed verification")
        return "Invalid Signature", 401

    try:
        event = json.loads(payload)
    except ValueError:
        logger.error("Webhook body is not valid JSON")
        return "Invalid payload", 400
    if not isinstance(event, dict):
        return "Invalid payload", 400

    try:
        get_engine().handle_webhook(event)
    except StorageFault as e:
        logger.error("Database error during webhook processing", extra={"error": e.message})
        return "Server Error Processing Webhook", 500

    return "OK", 200


@payments_bp.route("/verify/<reference>", methods=["GET"])
def verify_payment(reference):
    result = get_engine().verify(reference)

    if result.is_completed:
        if result.outcome is Outcome.COMPLETED:
            message = "Payment verified successfully"
        else:
            message = "Payment verified and already completed by webhook"
        return jsonify({
            "success": True,
            "message": message,
            "data": result.provider_data,
            "dbStatus": result.db_status,
        })

    return jsonify({
        "success": False,
        "message": f"Payment {result.status.value}",
        "data": result.provider_data,
        "dbStatus": result.db_status,
    }), 400
