"""Ordered wizard steps and the static copy attached to each of them."""

from enum import IntEnum
from typing import Dict


class Step(IntEnum):
    BUSINESS_INFO = 1
    COMPANY_PROFILE = 2
    INDUSTRY = 3
    DEPARTMENT_DOMAIN = 4
    CHALLENGES = 5
    AI_MATURITY = 6
    SOLUTIONS = 7
    TIMING_BUDGET = 8
    SUMMARY = 9
    PAYMENT = 10
    CONFIRMATION = 11


FIRST_STEP = Step.BUSINESS_INFO
LAST_STEP = Step.CONFIRMATION

# Steps shown in the progress header (Payment and Confirmation are not counted).
TOTAL_STEPS = 9


STEP_DESCRIPTIONS: Dict[Step, Dict[str, str]] = {
    Step.BUSINESS_INFO: {"title": "Business Info", "description": "Tell us about your company"},
    Step.COMPANY_PROFILE: {"title": "Company Profile", "description": "Let us know who you are"},
    Step.INDUSTRY: {"title": "Industry", "description": "Your field of business"},
    Step.DEPARTMENT_DOMAIN: {"title": "Your Role", "description": "Your position and focus"},
    Step.CHALLENGES: {"title": "Challenges", "description": "Your current pain points"},
    Step.AI_MATURITY: {"title": "AI Readiness", "description": "Your current AI stage"},
    Step.SOLUTIONS: {"title": "Solutions", "description": "Potential AI opportunities"},
    Step.TIMING_BUDGET: {"title": "Timeline & Budget", "description": "Project scope and scale"},
    Step.SUMMARY: {"title": "Summary", "description": "Final review and submission"},
    Step.PAYMENT: {"title": "Payment", "description": "Finalize your request"},
    Step.CONFIRMATION: {"title": "Confirmation", "description": "Request received"},
}


INITIAL_GUIDE_TEXT: Dict[Step, str] = {
    Step.BUSINESS_INFO: "Let's start with the basics. This information helps us understand your company context.",
    Step.COMPANY_PROFILE: "We can analyze your website to generate a company summary, which saves you time.",
    Step.INDUSTRY: "Select your primary industries. This helps us tailor use cases and solutions specific to your field.",
    Step.DEPARTMENT_DOMAIN: "Help us understand your position and the areas of the business you focus on.",
    Step.CHALLENGES: (
        "What are the primary pain points you're looking to solve? "
        "This is crucial for matching you with the right AI tools."
    ),
    Step.AI_MATURITY: "Your experience with AI helps us understand the best starting point for our collaboration.",
    Step.SOLUTIONS: (
        "Based on your challenges, here are some solutions that might be a good fit. "
        "Our AI can suggest options tailored to you."
    ),
    Step.TIMING_BUDGET: (
        "Understanding your timeline and budget helps us propose a realistic and effective project scope."
    ),
    Step.SUMMARY: "Please review all your selections before proceeding to the final step.",
    Step.PAYMENT: "Finalize your request to receive your tailored proposal.",
    Step.CONFIRMATION: "Your request has been submitted successfully.",
}

DEFAULT_GUIDE_TEXT = "Let's continue building your AI proposal."


def initial_guide_text(step: Step) -> str:
    return INITIAL_GUIDE_TEXT.get(step, DEFAULT_GUIDE_TEXT)


def step_title(step: Step) -> str:
    return STEP_DESCRIPTIONS[step]["title"]
