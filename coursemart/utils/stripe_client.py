"""
Stripe PaymentIntent helpers
Talks to the Stripe REST API directly with requests (form-encoded bodies, bearer secret key).
"""

import requests
from flask import current_app

from coursemart.errors import APIError, PaymentGatewayError


def _headers(idempotency_key=None):
    secret_key = current_app.config.get("STRIPE_SECRET_KEY")
    if not secret_key:
        raise APIError("Payment gateway is not configured.", 500)

    headers = {
        "Authorization": f"Bearer {secret_key}",
        "Content-Type": "application/x-www-form-urlencoded",
    }
    if idempotency_key:
        headers["Idempotency-Key"] = idempotency_key
    return headers


def _handle_response(response, action):
    try:
        data = response.json()
    except ValueError:
        data = {}

    if response.status_code != 200:
        message = (data.get("error") or {}).get("message") or "Stripe request failed"
        current_app.logger.error(f"Stripe {action} failed ({response.status_code}): {message}")
        raise PaymentGatewayError(f"Failed to {action}: {message}")
    return data


def create_payment_intent(amount, currency, metadata, idempotency_key=None):
    """
    Create a PaymentIntent

    Args:
        amount: integer amount in minor units (cents)
        currency: three-letter ISO code, lower case
        metadata: dict stored on the intent (course_id, user_id)
        idempotency_key: replays of the same key return the original intent

    Returns:
        dict: the PaymentIntent object (id, client_secret, status, amount, ...)
    """
    payload = {
        "amount": amount,
        "currency": currency,
        "automatic_payment_methods[enabled]": "true",
    }
    for key, value in metadata.items():
        payload[f"metadata[{key}]"] = str(value)

    base_url = current_app.config["STRIPE_API_BASE"]
    try:
        response = requests.post(
            f"{base_url}/payment_intents",
            data=payload,
            headers=_headers(idempotency_key),
            timeout=current_app.config.get("STRIPE_TIMEOUT", 10),
        )
    except requests.exceptions.RequestException as e:
        current_app.logger.error(f"Could not reach Stripe: {e}")
        raise PaymentGatewayError("Could not reach Stripe. Try again.")

    intent = _handle_response(response, "create payment intent")
    current_app.logger.info(f"Created PaymentIntent {intent.get('id')} for {amount} {currency}")
    return intent


def retrieve_payment_intent(intent_id):
    base_url = current_app.config["STRIPE_API_BASE"]
    try:
        response = requests.get(
            f"{base_url}/payment_intents/{intent_id}",
            headers=_headers(),
            timeout=current_app.config.get("STRIPE_TIMEOUT", 10),
        )
    except requests.exceptions.RequestException as e:
        current_app.logger.error(f"Could not reach Stripe: {e}")
        raise PaymentGatewayError("Could not reach Stripe. Try again.")

    return _handle_response(response, "retrieve payment intent")
