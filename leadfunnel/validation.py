"""Per-step field validation gating forward navigation in the wizard."""

import re
from typing import Dict

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from leadfunnel.schemas import FormData
from leadfunnel.steps import Step

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")

_url_adapter = TypeAdapter(AnyHttpUrl)


def normalize_website(website: str) -> str:
    return website if website.startswith("http") else f"https://{website}"


def is_valid_url(value: str) -> bool:
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def _validate_business_info(form: FormData) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not form.name.strip():
        errors["name"] = "Your name is required."
    if not form.email.strip():
        errors["email"] = "Your email is required."
    elif not EMAIL_PATTERN.match(form.email):
        errors["email"] = "Please enter a valid email address."
    if not form.company_name.strip():
        errors["company_name"] = "Company name is required."
    if not form.website.strip():
        errors["website"] = "Company website is required."
    elif not is_valid_url(normalize_website(form.website)):
        errors["website"] = "Please enter a valid URL (e.g., https://example.com)."
    if not form.role.strip():
        errors["role"] = "Your role is required."
    return errors


def validate(step: Step, form: FormData) -> Dict[str, str]:
    """Return the fields of ``form`` that currently fail for ``step``.

    An empty dict means the step may be left. Only the business info step
    carries rules; every other step is unconstrained.
    """
    if step == Step.BUSINESS_INFO:
        return _validate_business_info(form)
    return {}
