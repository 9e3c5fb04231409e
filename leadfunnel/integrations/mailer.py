import os
from typing import Any, Dict, Optional

import httpx

from leadfunnel import monitoring


DEFAULT_TIMEOUT = float(os.getenv("EMAIL_TIMEOUT_SECONDS", "10"))
DEFAULT_SENDER = "proposals@leadfunnel.local"


def _api_url() -> str:
    url = os.getenv("EMAIL_API_URL")
    if not url:
        raise RuntimeError("Email API URL not configured")
    return url


def _token() -> Optional[str]:
    return os.getenv("EMAIL_API_TOKEN")


def confirmation_body(name: Optional[str], company_name: Optional[str]) -> str:
    company = f" for {company_name}" if company_name else ""
    return (
        f"Hi {name or 'there'},\n\n"
        f"Thanks for submitting your AI project request{company}. "
        "Our team is reviewing your answers and will send a personalized proposal "
        "to this address within 3 business days.\n\n"
        "Best regards,\nThe LeadFunnel team"
    )


async def send_email(
    to: str,
    subject: str,
    text: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    url = _api_url()
    payload = {
        "from": os.getenv("EMAIL_FROM", DEFAULT_SENDER),
        "to": to,
        "subject": subject,
        "text": text,
    }
    headers = {"Content-Type": "application/json; charset=utf-8"}
    token = _token()
    if token:
        headers["Authorization"] = f"Bearer {token}"

    try:
        async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT, transport=transport) as client:
            response = await client.post(url, json=payload, headers=headers)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        monitoring.capture_exception(exc)
        raise RuntimeError(f"Email request failed: {exc}") from exc

    try:
        return response.json()
    except ValueError:
        return {"ok": True}


async def send_confirmation(email: str, name: Optional[str] = None, company_name: Optional[str] = None) -> Dict[str, Any]:
    return await send_email(
        email,
        "We received your AI project request",
        confirmation_body(name, company_name),
    )


async def send_quote(email: str, subject: str, quote: str) -> Dict[str, Any]:
    return await send_email(email, subject, quote)
