"""Turns a clicked guide suggestion into a form-data patch for the current step."""

import re
from typing import Any, Dict, List

from leadfunnel.constants import DOMAIN_SEPARATOR
from leadfunnel.schemas import FormData
from leadfunnel.steps import Step

TIMELINE_KEYWORDS = ("month", "asap", "year")


def _toggle(values: List[str], item: str) -> List[str]:
    if item in values:
        return [value for value in values if value != item]
    return [*values, item]


def _split_domains(text: str) -> List[str]:
    return text.split(DOMAIN_SEPARATOR) if text else []


def is_timeline_suggestion(suggestion: str) -> bool:
    lowered = suggestion.lower()
    return any(keyword in lowered for keyword in TIMELINE_KEYWORDS)


def apply_suggestion(step: Step, form: FormData, suggestion: str) -> Dict[str, Any]:
    """Return the patch produced by choosing ``suggestion`` on ``step``.

    Set-like fields toggle membership, the AI use case gains a bullet line,
    and timing/budget suggestions are routed by keyword. Steps without
    suggestion handling return an empty patch.
    """
    if step == Step.BUSINESS_INFO:
        return {"role": suggestion}
    if step == Step.INDUSTRY:
        return {"industries": _toggle(form.industries, suggestion)}
    if step == Step.DEPARTMENT_DOMAIN:
        domains = _toggle(_split_domains(form.other_business_domain), suggestion)
        return {"other_business_domain": DOMAIN_SEPARATOR.join(domains)}
    if step == Step.CHALLENGES:
        return {"challenges": _toggle(form.challenges, suggestion)}
    if step == Step.AI_MATURITY:
        bullet = f"- {suggestion}"
        if form.ai_use_case:
            return {"ai_use_case": f"{form.ai_use_case}\n{bullet}"}
        return {"ai_use_case": bullet}
    if step == Step.SOLUTIONS:
        return {"solutions": _toggle(form.solutions, suggestion)}
    if step == Step.TIMING_BUDGET:
        if is_timeline_suggestion(suggestion):
            return {"timeline": suggestion}
        return {"budget": re.sub(r"[^0-9]", "", suggestion)}
    return {}
