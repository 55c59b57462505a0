import requests
from flask import current_app


def _request(method, path, payload):
    """Call the Loops API. Returns the decoded body; raises requests.RequestException."""
    resp = requests.request(
        method,
        f"{current_app.config['LOOPS_BASE_URL']}{path}",
        headers={
            "Authorization": f"Bearer {current_app.config['LOOPS_API_KEY']}",
            "Content-Type": "application/json",
        },
        json=payload,
        timeout=15,
    )
    resp.raise_for_status()
    return resp.json()


def _send(label, method, path, payload):
    try:
        data = _request(method, path, payload)
    except requests.RequestException as e:
        current_app.logger.error(f"Error sending {label}: {e}")
        return {"success": False, "error": str(e)}

    if not isinstance(data, dict) or not data.get("success"):
        current_app.logger.error(f"Failed to send {label}: {data}")
        return {"success": False, "error": data}
    return {"success": True, **({"id": data["id"]} if "id" in data else {})}


def send_welcome_email(email, first_name=None):
    return _send("welcome email", "POST", "/transactional", {
        "transactionalId": current_app.config["LOOPS_WELCOME_TEMPLATE_ID"],
        "email": email,
        "dataVariables": {"firstName": first_name or email.split("@")[0]},
    })


def send_payment_confirmation_email(email, plan_name, billing_interval):
    return _send("payment confirmation", "POST", "/transactional", {
        "transactionalId": current_app.config["LOOPS_PAYMENT_TEMPLATE_ID"],
        "email": email,
        "dataVariables": {"planName": plan_name, "billingInterval": billing_interval},
    })


def update_contact(email, properties):
    """Create or update a Loops contact. None-valued properties are dropped."""
    payload = {"email": email}
    payload.update({k: v for k, v in properties.items() if v is not None})
    return _send("contact update", "PUT", "/contacts/update", payload)


def send_event(email, event_name, event_properties=None):
    payload = {"email": email, "eventName": event_name}
    if event_properties:
        payload["eventProperties"] = event_properties
    return _send("event", "POST", "/events/send", payload)
