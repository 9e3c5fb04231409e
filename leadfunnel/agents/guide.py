"""Contextual guidance and clickable suggestions for each wizard step."""

import json
import logging
import re
from typing import Any, Dict, Optional

from leadfunnel import monitoring
from leadfunnel.agents import website
from leadfunnel.constants import GUIDE_FALLBACK_TEXT
from leadfunnel.llm.router import LLMRouter, LLMUnavailable, router as default_router
from leadfunnel.schemas import FormData, GuideContent, WebsiteSummary
from leadfunnel.steps import DEFAULT_GUIDE_TEXT, Step, initial_guide_text

logger = logging.getLogger(__name__)

GUIDE_SYSTEM_PROMPT = """You are a helpful assistant who MUST return a valid JSON object in this exact format, with NO markdown formatting or code block markers:
{
  "guideText": "2-4 sentences (35-60 words) of guidance text",
  "suggestions": ["suggestion 1", "suggestion 2", "suggestion 3", "suggestion 4"]
}
Each suggestion should be concise and actionable. Return ONLY the JSON object, no other text or formatting."""

STATIC_GUIDES: Dict[Step, str] = {
    Step.BUSINESS_INFO: (
        "Let's start with the basics. This information helps us understand your company context "
        "and ensures our proposal reaches the right person."
    ),
    Step.COMPANY_PROFILE: (
        "Please review the auto-generated summary. Correcting any errors here is important, as we use "
        "this to understand your core business. We can always regenerate it if needed."
    ),
    Step.DEPARTMENT_DOMAIN: (
        "Select the business domains you work with. Your choices help us understand which areas of the "
        "business could benefit most from AI implementation. Consider both your direct responsibilities "
        "and areas you collaborate with."
    ),
    Step.AI_MATURITY: (
        "Your current experience with AI is a key factor. It helps us determine the complexity of the "
        "proposed solution and the amount of support you might need, ensuring the project is a success "
        "from day one."
    ),
    Step.TIMING_BUDGET: (
        "Understanding your desired timeline and budget is crucial for scoping a project that delivers "
        "maximum value. This allows us to propose a realistic plan that aligns with your financial and "
        "strategic goals."
    ),
    Step.SUMMARY: (
        "Please review all your selections. This is the final step before payment. Once you submit and "
        "complete payment, we'll draft a detailed, personalized AI proposal and send it to your email "
        "within 3 business days."
    ),
}


def _fallback() -> GuideContent:
    return GuideContent(guide_text=GUIDE_FALLBACK_TEXT, suggestions=[])


def _industry_prompt(form: FormData) -> str:
    website_info = ""
    if form.website_insights:
        website_info = f"and website themes like '{', '.join(form.website_insights)}'"
    if form.company_summary:
        summary_context = f'For a company with the summary: "{form.company_summary}" {website_info}'
    else:
        summary_context = "The user needs to select their industry."
    return (
        f"{summary_context}, suggest 4-5 relevant industries. You are an expert business analyst; you MUST "
        "generate suggestions based on the user's information. The suggestions should be diverse and "
        "insightful. The guide text should encourage the user to select multiple relevant sectors. For "
        "example, if the company is a game studio, suggest 'Video Game Development' or 'Interactive "
        "Entertainment', not just 'Arts, Entertainment, and Recreation'."
    )


def _challenges_prompt(form: FormData) -> str:
    domains = form.all_domains()
    lines = [
        "You are an AI consultant helping identify business challenges that could be solved with AI.",
        "",
        "Company Context:",
        f"- Industries: {', '.join(form.industries)}",
    ]
    if domains:
        lines.append(f"- Business Domains: focusing on the {', '.join(domains)} domains")
    if form.department_level:
        lines.append(f"- Position Level: from the perspective of a {form.department_level}")
    lines.extend(
        [
            "",
            "Suggest four pain points specific to their industry and role, focused on business impact, "
            "clear and actionable, and relevant to AI implementation. Consider manual processes that could "
            "be automated, reporting bottlenecks, customer service inefficiencies, resource allocation, "
            "slow decision-making, quality control and compliance, and competitiveness gaps. The guide text "
            "should explain in 2-3 sentences why identifying these pain points matters for their context.",
        ]
    )
    return "\n".join(lines)


def _solutions_prompt(form: FormData) -> str:
    industry_context = f"in the '{', '.join(form.industries)}' industries" if form.industries else ""
    challenges_context = f"that is facing these challenges: '{', '.join(form.challenges)}'"
    use_case_context = f'They have a specific idea in mind: "{form.ai_use_case}".' if form.ai_use_case else ""
    return (
        f"For a company {industry_context} {challenges_context}, Their current AI stage is: "
        f"'{form.ai_stage}'. {use_case_context}, suggest 4-5 potential AI solutions. The guide text should "
        "connect these solutions back to their stated challenges and AI readiness. Your suggestions should "
        "be realistic given their AI stage."
    )


def build_prompt(step: Step, form: FormData) -> Optional[str]:
    if step == Step.INDUSTRY:
        return _industry_prompt(form)
    if step == Step.CHALLENGES:
        return _challenges_prompt(form)
    if step == Step.SOLUTIONS:
        return _solutions_prompt(form)
    return None


def parse_guide(raw: str) -> Optional[GuideContent]:
    """Parse a model reply into guide content, tolerating code fences."""
    clean = re.sub(r"```(?:json)?\n?", "", raw or "").strip()
    try:
        data: Any = json.loads(clean)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    guide_text = data.get("guideText")
    suggestions = data.get("suggestions")
    if not guide_text or not isinstance(suggestions, list):
        return None
    return GuideContent(
        guide_text=str(guide_text),
        suggestions=[str(item).strip() for item in suggestions if str(item).strip()],
    )


class AssistantGuide:
    """LLM-backed guide provider consumed by the wizard controller."""

    def __init__(self, llm: Optional[LLMRouter] = None) -> None:
        self.llm = llm or default_router

    def initial_text(self, step: Step) -> str:
        return initial_guide_text(step)

    async def fetch_guide(self, step: Step, form: FormData) -> GuideContent:
        """Return guidance for ``step``; LLM problems degrade to a fixed fallback."""
        if step in STATIC_GUIDES:
            return GuideContent(guide_text=STATIC_GUIDES[step], suggestions=[])
        if step == Step.CHALLENGES and not form.industries:
            return _fallback()

        prompt = build_prompt(step, form)
        if not prompt:
            return GuideContent(guide_text=DEFAULT_GUIDE_TEXT, suggestions=[])
        if not self.llm.is_configured():
            return _fallback()

        try:
            result = await self.llm.complete(
                prompt,
                {"system_prompt": GUIDE_SYSTEM_PROMPT, "temperature": 0.7, "tier": "fast"},
            )
        except LLMUnavailable as exc:
            monitoring.capture_exception(exc)
            return _fallback()

        content = parse_guide(result["output"])
        if content is None:
            logger.warning("Guide response did not match the expected JSON shape for step %s", int(step))
            return _fallback()
        return content

    async def summarize_website(self, url: str) -> WebsiteSummary:
        return await website.summarize(url, llm=self.llm)
