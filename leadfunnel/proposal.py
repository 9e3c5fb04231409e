"""Proposal markdown structure: numbered ``##`` sections located by heading markers."""

import json
import re
from typing import Dict, List, Tuple

SECTIONS: List[Tuple[int, str, str]] = [
    (1, "Executive Brief", "executiveBrief"),
    (2, "Strategic Analysis", "strategicAnalysis"),
    (3, "Proposed Solutions", "proposedSolutions"),
    (4, "Implementation Roadmap", "implementationRoadmap"),
    (5, "Investment Overview", "investmentOverview"),
    (6, "Partnership Benefits", "partnershipBenefits"),
    (7, "Next Steps", "nextSteps"),
    (8, "Call to Action", "callToAction"),
]

BRIEF_VARIANTS = ("## 1. Executive Brief", "# 1. Executive Brief", "## Executive Brief", "# Executive Brief")

_BRIEF_PREFIX = re.compile(r"^#+\s*1?\.?\s*Executive Brief\s*", re.IGNORECASE)
_FENCE = re.compile(r"^```(?:json)?\n?|```$")


class ProposalFormatError(ValueError):
    """Raised when regenerated proposal sections cannot be parsed."""


def heading(number: int) -> str:
    for index, title, _ in SECTIONS:
        if index == number:
            return f"## {index}. {title}"
    raise KeyError(number)


def get_section(text: str, start_heading: str, next_prefix: str) -> str:
    """Return the body between ``start_heading`` and the next ``## <next_prefix>``."""
    if not text:
        return ""
    start = text.find(start_heading)
    if start == -1:
        return ""
    after = text[start + len(start_heading):]
    end = after.find(f"\n## {next_prefix}")
    body = after if end == -1 else after[:end]
    return body.strip()


def section(text: str, number: int) -> str:
    return get_section(text, heading(number), f"{number + 1}.")


def executive_brief(text: str) -> str:
    for variant in BRIEF_VARIANTS:
        body = get_section(text, variant, "2.")
        if body:
            return body
    end = text.find("\n## 2.")
    head = text if end == -1 else text[:end]
    return _BRIEF_PREFIX.sub("", head.strip()).strip()


def with_heading(number: int, body: str) -> str:
    body = (body or "").strip()
    if body.startswith(f"## {number}."):
        return body
    return f"{heading(number)}\n{body}".rstrip()


def assemble(brief: str, sections: Dict[str, str]) -> str:
    """Join an executive brief and sections 2-8 into one proposal document."""
    parts = [heading(1), brief.strip()]
    for number, _, key in SECTIONS[1:]:
        parts.append(with_heading(number, sections.get(key) or ""))
    return "\n\n".join(parts)


def parse_sections(raw: str) -> Dict[str, str]:
    clean = _FENCE.sub("", (raw or "").strip()).strip()
    try:
        data = json.loads(clean)
    except ValueError as exc:
        raise ProposalFormatError("Failed to parse regenerated sections") from exc
    if not isinstance(data, dict):
        raise ProposalFormatError("Regenerated sections must be a JSON object")
    return {key: str(data.get(key) or "") for _, _, key in SECTIONS[1:]}


def split_sections(text: str) -> Dict[str, str]:
    sections = {"executiveBrief": executive_brief(text)}
    for number, _, key in SECTIONS[1:]:
        sections[key] = section(text, number)
    return sections
