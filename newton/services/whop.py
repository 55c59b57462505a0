import base64
import hashlib
import hmac
import time
from urllib.parse import urlencode, urlparse, parse_qsl, urlunparse

import requests
from flask import current_app

WHOP_USER_METADATA_KEY = "supabase_user_id"

PLAN_MAP = {
    "plan_rgupWHoVJKhDw": {"name": "Yearly", "interval": "yearly"},
    "plan_g5wnacjwa6tp3": {"name": "Lifetime", "interval": "lifetime"},
    "plan_AhTV9u0UD48Z0": {"name": "Monthly", "interval": "monthly"},
}


class WhopAPIError(Exception):
    """Raised when the Whop API rejects or fails a request."""


class WebhookVerificationError(Exception):
    """Raised when a webhook delivery fails signature or timestamp checks."""


def _plans():
    return current_app.config.get("WHOP_PLANS") or PLAN_MAP


def get_plan_for_product(product_id):
    """Return {"name", "interval"} for a Whop plan id, or None."""
    if not product_id:
        return None
    return _plans().get(product_id)


def _set_query_params(url, params):
    parts = urlparse(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in params]
    query.extend(params.items())
    return urlunparse(parts._replace(query=urlencode(query)))


def build_whop_checkout_url(base_url, user_id):
    """
    Add the local user id to a hosted Whop checkout link as
    metadata[supabase_user_id]=<user_id>, keeping any other query params.
    """
    if not base_url:
        raise ValueError("base_url is required to build Whop checkout URL")
    if not user_id:
        raise ValueError("user_id is required to build Whop checkout URL")
    return _set_query_params(base_url, {f"metadata[{WHOP_USER_METADATA_KEY}]": str(user_id)})


def create_checkout_session(plan_id, user_id, email):
    """
    Create a checkout configuration for plan_id carrying the user id as metadata.
    Returns: {"purchase_url", "session_id"}
    """
    api_key = current_app.config["WHOP_API_KEY"]
    payload = {
        "plan_id": plan_id,
        "metadata": {WHOP_USER_METADATA_KEY: str(user_id)},
        "redirect_url": f"{current_app.config['SITE_URL'].rstrip('/')}/success",
    }
    try:
        resp = requests.post(
            f"{current_app.config['WHOP_API_BASE_URL'].rstrip('/')}/checkout_configurations",
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            json=payload,
            timeout=30,
        )
        resp.raise_for_status()
        data = resp.json()
    except requests.RequestException as e:
        raise WhopAPIError(f"Checkout configuration request failed: {e}") from e

    purchase_url = data.get("purchase_url")
    if not purchase_url:
        raise WhopAPIError("Whop response did not include a purchase_url")

    # Prefill the buyer's email on the hosted checkout page
    purchase_url = _set_query_params(purchase_url, {"email": email, "prefilled_email": email})
    return {"purchase_url": purchase_url, "session_id": data.get("id")}


def compute_signature(raw_body, timestamp, secret):
    """Base64 HMAC-SHA256 of "<timestamp>.<raw body>"."""
    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")
    signed = f"{timestamp}.".encode("utf-8") + raw_body
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def _check_timestamp(timestamp, tolerance):
    try:
        ts = int(str(timestamp).strip())
    except ValueError as e:
        raise WebhookVerificationError("Invalid webhook timestamp") from e
    if ts > 10**11:  # milliseconds
        ts //= 1000
    if tolerance and abs(time.time() - ts) > tolerance:
        raise WebhookVerificationError("Webhook timestamp outside tolerance")


def verify_webhook_signature(raw_body, timestamp, signature, secret, tolerance=0):
    """
    Raise WebhookVerificationError unless one of the signatures in the header
    matches. The header may hold several space-separated entries, each
    optionally versioned as "v1,<base64>".
    """
    if not timestamp or not signature:
        raise WebhookVerificationError("Missing webhook signature headers")
    _check_timestamp(timestamp, tolerance)

    expected = compute_signature(raw_body, timestamp, secret)
    for candidate in signature.split():
        value = candidate.split(",", 1)[1] if "," in candidate else candidate
        if hmac.compare_digest(value.encode("utf-8"), expected.encode("utf-8")):
            return
    raise WebhookVerificationError("Signature mismatch")
