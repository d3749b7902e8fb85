"""
Marketing Sync Service

Pushes ticket buyers to the marketing tools:
- Brevo (email + SMS contact list), when the buyer left email and phone
- ManyChat (messaging subscriber, tagged with MANYCHAT_TAG_NAME), when the
  buyer left an email

Each integration is disabled (warning logged) while its key is missing.
Failures are logged and swallowed: a sale must never fail because a
marketing API is down.
"""

from __future__ import annotations

import re

import httpx
from flask import current_app


BREVO_API_URL = "https://api.brevo.com/v3"
MANYCHAT_API_URL = "https://api.manychat.com/fb"


def _build_client() -> httpx.Client:
    timeout = current_app.config.get("MARKETING_TIMEOUT_SECONDS", 10)
    return httpx.Client(timeout=timeout)


def split_name(name: str) -> tuple[str, str]:
    """First word is the first name, the rest is the last name."""
    first, _, rest = (name or "").strip().partition(" ")
    return first, rest.strip()


def normalize_phone(phone: str | None) -> str | None:
    """
    Best-effort E.164 for Brazilian numbers.

    "+..." keeps its digits; 10 or 11 digit local numbers get the 55 country
    code. Anything with 5 digits or fewer is dropped.
    """
    if not phone:
        return None
    has_plus = phone.strip().startswith("+")
    digits = re.sub(r"\D", "", phone)
    if len(digits) <= 5:
        return None
    if not has_plus and 10 <= len(digits) <= 11:
        digits = "55" + digits
    return "+" + digits


# ---------------------------------------------------------------------------
# Brevo
# ---------------------------------------------------------------------------

def create_brevo_contact(name: str, email: str, phone: str) -> dict | None:
    api_key = current_app.config.get("BREVO_API_KEY")
    if not api_key:
        current_app.logger.warning("[Brevo] API key not configured. Brevo sync disabled.")
        return None

    first_name, last_name = split_name(name)
    payload = {
        "email": email,
        "attributes": {
            "NOME": name,
            "FIRSTNAME": first_name,
            "LASTNAME": last_name,
            "SMS": normalize_phone(phone) or phone,
        },
        "listIds": [current_app.config.get("BREVO_LIST_ID", 2)],
        "updateEnabled": True,
    }

    with _build_client() as client:
        response = client.post(
            f"{BREVO_API_URL}/contacts",
            json=payload,
            headers={"api-key": api_key, "accept": "application/json"},
        )
    if response.status_code >= 400:
        current_app.logger.error("[Brevo] Failed to create contact (%s): %s", response.status_code, response.text)
        return None

    current_app.logger.info("[Brevo] Contact created/updated for %s", email)
    # 204 on update, JSON body with the id on create
    return response.json() if response.content else {}


def brevo_status() -> dict:
    """Probe the Brevo account endpoint with the configured key."""
    api_key = current_app.config.get("BREVO_API_KEY")
    if not api_key:
        return {"apiWorks": False, "error": None}

    try:
        with _build_client() as client:
            response = client.get(f"{BREVO_API_URL}/account", headers={"api-key": api_key})
    except httpx.HTTPError as exc:
        return {"apiWorks": False, "error": str(exc)}

    if response.status_code >= 400:
        return {"apiWorks": False, "error": f"Status: {response.status_code} - {response.text}"}
    return {"apiWorks": True, "error": None}


# ---------------------------------------------------------------------------
# ManyChat
# ---------------------------------------------------------------------------

def _manychat_headers(token: str) -> dict:
    return {"accept": "application/json", "Authorization": f"Bearer {token}"}


def _resolve_manychat_tag(client: httpx.Client, token: str, tag_name: str) -> int | None:
    """Find the tag id by name, creating the tag when it does not exist."""
    response = client.get(f"{MANYCHAT_API_URL}/page/getTags", headers=_manychat_headers(token))
    if response.status_code < 400:
        for tag in response.json().get("data") or []:
            if tag.get("name") == tag_name:
                return tag.get("id")

    current_app.logger.info("[ManyChat] Tag %r not found, creating it", tag_name)
    response = client.post(
        f"{MANYCHAT_API_URL}/page/createTag",
        json={"name": tag_name},
        headers=_manychat_headers(token),
    )
    if response.status_code >= 400:
        current_app.logger.error("[ManyChat] Failed to create tag: %s", response.text)
        return None
    return (response.json().get("data") or {}).get("id")


def create_manychat_subscriber(name: str, email: str, phone: str | None = None) -> dict | None:
    token = current_app.config.get("MANYCHAT_API_TOKEN")
    if not token:
        current_app.logger.warning("[ManyChat] API token not configured. Sync disabled.")
        return None

    first_name, last_name = split_name(name)
    payload = {
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "has_opt_in_sms": True,
        "has_opt_in_email": True,
    }
    normalized = normalize_phone(phone)
    if normalized:
        payload["phone"] = normalized

    tag_name = current_app.config.get("MANYCHAT_TAG_NAME", "Passante Reserva")

    with _build_client() as client:
        response = client.post(
            f"{MANYCHAT_API_URL}/subscriber/createSubscriber",
            json=payload,
            headers=_manychat_headers(token),
        )
        if response.status_code >= 400:
            current_app.logger.error("[ManyChat] API error (%s): %s", response.status_code, response.text)
            return None

        data = response.json()
        subscriber_id = (data.get("data") or {}).get("id")
        if data.get("status") != "success" or not subscriber_id:
            return data

        tag_id = _resolve_manychat_tag(client, token, tag_name)
        if tag_id is None:
            current_app.logger.error("[ManyChat] Could not resolve tag id for %r", tag_name)
            return data

        client.post(
            f"{MANYCHAT_API_URL}/subscriber/addTag",
            json={"subscriber_id": subscriber_id, "tag_id": tag_id},
            headers=_manychat_headers(token),
        )
    return data


def verify_subscriber(email: str | None = None, phone: str | None = None) -> dict:
    """Look a buyer up in ManyChat by email and/or phone (raw and normalized)."""
    token = current_app.config.get("MANYCHAT_API_TOKEN")
    if not token:
        return {"error": "No Token"}

    results: dict = {}
    url = f"{MANYCHAT_API_URL}/subscriber/findByInfo"

    with _build_client() as client:
        if email:
            try:
                response = client.get(url, params={"email": email}, headers=_manychat_headers(token))
                results["emailSearch"] = {"status": response.status_code, "data": response.json()}
            except (httpx.HTTPError, ValueError) as exc:
                results["emailError"] = str(exc)

        if phone:
            try:
                response = client.get(url, params={"phone": phone}, headers=_manychat_headers(token))
                results["phoneSearchRaw"] = {"status": response.status_code, "data": response.json()}

                formatted = normalize_phone(phone) or phone
                response = client.get(url, params={"phone": formatted}, headers=_manychat_headers(token))
                results["phoneSearchFormatted"] = {
                    "tested": formatted,
                    "status": response.status_code,
                    "data": response.json(),
                }
            except (httpx.HTTPError, ValueError) as exc:
                results["phoneError"] = str(exc)

    return results


def sync_customer(name: str, email: str | None, phone: str | None) -> None:
    """Push a buyer to every configured integration. Never raises."""
    if email and phone:
        try:
            create_brevo_contact(name, email, phone)
        except Exception:
            current_app.logger.exception("[Brevo] Sync failed for %s", email)

    if email:
        try:
            create_manychat_subscriber(name, email, phone)
        except Exception:
            current_app.logger.exception("[ManyChat] Sync failed for %s", email)
