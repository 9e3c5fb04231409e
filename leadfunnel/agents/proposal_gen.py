"""Proposal (quote) generation for finished intake submissions."""

import logging
from typing import Any, List, Optional

from leadfunnel import monitoring, proposal
from leadfunnel.llm.router import LLMRouter, LLMUnavailable, router as default_router

logger = logging.getLogger(__name__)

PROPOSAL_SYSTEM_PROMPT = "You are a senior business consultant who writes professional AI solution proposals."
REGENERATE_SYSTEM_PROMPT = "You return strictly valid JSON per instructions, without code fences."

DEFAULT_TIMELINE = "3 months"


def _joined(values: Optional[List[str]], empty: str = "Not specified") -> str:
    return ", ".join(values) if values else empty


def _domains(submission: Any) -> List[str]:
    return [d for d in [*(submission.business_domains or []), submission.other_business_domain] if d]


def _budget(submission: Any) -> str:
    return submission.budget or "20000"


def build_prompt(submission: Any) -> str:
    """Prompt asking the model for the eight-section proposal document."""
    company = submission.company_name or "the client"
    industries = _joined(submission.industries)
    lines = [
        "You are an AI strategist preparing a premium, personalized AI proposal. Create a clear, "
        "professional and persuasive document.",
        "",
        "# CLIENT PROFILE (for internal use only)",
        f"- Company Name: {company}",
        f"- Team Size: {submission.team_size}",
        f"- Industry: {industries}",
        f"- Summary: {submission.company_summary}",
        f"- Department Level: {submission.department_level}",
        f"- Business Domains: {_joined(_domains(submission))}",
        f"- AI Maturity: {submission.ai_stage}",
        f"- Challenges: {_joined(submission.challenges, 'their specified business goals')}",
        f"- Clarification: {submission.challenge_clarification or 'None'}",
        f"- AI Use Case: {submission.ai_use_case or 'None'}",
        f"- Solutions Interested In: {_joined(submission.solutions)}",
        f"- Timeline: {submission.timeline or DEFAULT_TIMELINE}",
        f"- Budget: €{_budget(submission)}",
        "",
        "# PROPOSAL STRUCTURE",
        "Generate the proposal in markdown with exactly these level-two headings, in order:",
    ]
    lines.extend(proposal.heading(number) for number, _, _ in proposal.SECTIONS)
    lines.extend(
        [
            "",
            "The executive brief is at most three short paragraphs and holds no solution details. "
            "Strategic Analysis, Implementation Roadmap and Investment Overview each contain a markdown table. "
            "Each proposed solution gets its own '### <Solution Name>' subsection with Function, Relevance "
            "and Impact lines.",
            f"State 'Total Duration: {submission.timeline or DEFAULT_TIMELINE}' in the roadmap and "
            f"'Total Investment: €{_budget(submission)}' in the investment overview.",
        ]
    )
    return "\n".join(lines)


def _fallback(submission: Any) -> str:
    company = submission.company_name or "your company"
    solutions = submission.solutions or ["Custom AI solution based on a discovery phase"]
    challenges = submission.challenges or ["Your specified business goals"]
    timeline = submission.timeline or DEFAULT_TIMELINE

    brief = (
        f"We help companies turn AI into measurable business results. {company} operates in "
        f"{_joined(submission.industries, 'a competitive market')}, and the challenges you shared map "
        "directly onto proven AI capabilities.\n\n"
        "The sections below outline how we would approach the engagement, from discovery to launch."
    )
    analysis = "\n".join(
        ["| Current Challenges | Strategic Opportunity | Expected Impact |", "|---|---|---|"]
        + [f"| {item} | Targeted AI automation | Reduced effort and faster decisions |" for item in challenges]
    )
    proposed = "\n\n".join(
        f"### {name}\n**Function:** {name} tailored to your workflows.\n"
        f"**Relevance:** Addresses the priorities {company} shared with us.\n"
        "**Impact:**\n- Time saved on manual work\n- Better data for decisions\n- Faster customer response"
        for name in solutions
    )
    roadmap = "\n".join(
        [
            "| Phase | Duration | Key Deliverables | Success Criteria |",
            "|---|---|---|---|",
            "| Discovery | 2 weeks | Requirements and data audit | Agreed scope |",
            "| Development | 4 weeks | Working solution | Acceptance tests pass |",
            "| Integration | 2 weeks | Connected systems | Live data flowing |",
            "| Launch | 1 week | Rollout and training | Team adoption |",
            "",
            f"Total Duration: {timeline}",
        ]
    )
    investment = "\n".join(
        [
            "| Component | Description | Value Delivered |",
            "|---|---|---|",
            "| Discovery | Workshops and analysis | Clear roadmap |",
            "| Build | Solution development | Working AI capability |",
            "| Support | Launch and handover | Sustained results |",
            "",
            f"Total Investment: €{_budget(submission)}",
        ]
    )
    sections = {
        "strategicAnalysis": analysis,
        "proposedSolutions": proposed,
        "implementationRoadmap": roadmap,
        "investmentOverview": investment,
        "partnershipBenefits": "- Practical, results-driven delivery\n- Senior consultants on every project\n"
        "- Transparent milestones and reporting",
        "nextSteps": "1. **Immediate:** Schedule a kickoff call within 48 hours\n"
        "2. **Week 1:** Confirm goals and success metrics\n3. **Week 2:** Start discovery",
        "callToAction": "Reply to this email to book your kickoff session. We commit to a detailed plan "
        "within one week of the first call.",
    }
    return proposal.assemble(brief, sections)


async def draft(submission: Any, *, llm: Optional[LLMRouter] = None) -> str:
    """Generate the full proposal for ``submission``.

    Returns a deterministic template when no model is configured; model
    failures propagate as :class:`LLMUnavailable` so callers can retry.
    """
    llm = llm or default_router
    if not llm.is_configured():
        return _fallback(submission)

    result = await llm.complete(
        build_prompt(submission),
        {"system_prompt": PROPOSAL_SYSTEM_PROMPT, "temperature": 0.7, "tier": "reasoning", "cache": False},
    )
    return result["output"].strip()


def _regenerate_prompt(submission: Any, brief: str) -> str:
    context = "\n".join(
        [
            f"Company: {submission.company_name}",
            f"Industries: {_joined(submission.industries)}",
            f"AI Stage: {submission.ai_stage}",
            f"Timeline: {submission.timeline or DEFAULT_TIMELINE}",
            f"Budget: {_budget(submission)}",
            f"Known Challenges: {_joined(submission.challenges)}",
            f"Preferred Solutions: {_joined(submission.solutions)}",
        ]
    )
    keys = "\n".join(
        f'  "{key}": "Markdown for section \'{proposal.heading(number)}\'"'
        for number, _, key in proposal.SECTIONS[1:]
    )
    return (
        "You are a senior AI solutions consultant. Given the executive brief and context, generate ALL "
        "remaining proposal sections in Markdown that align with and are logically derived from the "
        "executive brief. Keep the tone concise, business-focused, and consistent.\n\n"
        f"Executive Brief (authoritative source):\n{brief}\n\nContext:\n{context}\n\n"
        "Return ONLY valid JSON with these string fields, no markdown code fences:\n"
        f"{{\n{keys}\n}}"
    )


async def regenerate_from_brief(submission: Any, brief: str, *, llm: Optional[LLMRouter] = None) -> str:
    """Rebuild sections 2-8 so they follow an edited executive brief."""
    llm = llm or default_router
    if not llm.is_configured():
        sections = proposal.split_sections(_fallback(submission))
        return proposal.assemble(brief, sections)

    try:
        result = await llm.complete(
            _regenerate_prompt(submission, brief),
            {"system_prompt": REGENERATE_SYSTEM_PROMPT, "temperature": 0.5, "tier": "reasoning", "cache": False},
        )
    except LLMUnavailable as exc:
        monitoring.capture_exception(exc)
        raise
    sections = proposal.parse_sections(result["output"])
    logger.info("proposal_regenerated", extra={"proposal": {"company": submission.company_name}})
    return proposal.assemble(brief, sections)
