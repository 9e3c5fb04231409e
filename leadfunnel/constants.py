from typing import List

TEAM_SIZE_OPTIONS: List[str] = ["1", "2-10", "11-50", "51-200", "200+"]

INDUSTRY_OPTIONS: List[str] = sorted(
    [
        "Accommodation and Food Services",
        "Administrative and Support Services",
        "Aerospace & Defense",
        "Agriculture, Forestry, Fishing and Hunting",
        "Arts, Entertainment, and Recreation",
        "Automotive",
        "Biotechnology",
        "Construction",
        "Consulting",
        "Cybersecurity",
        "E-commerce",
        "Educational Services",
        "Energy & Utilities",
        "Finance and Insurance",
        "Fintech",
        "Government & Public Administration",
        "Healthcare and Social Assistance",
        "Health Tech",
        "Information Technology (IT) Services",
        "Legal Services",
        "Logistics & Supply Chain",
        "Management of Companies and Enterprises",
        "Manufacturing",
        "Marketing & Advertising",
        "Media & Communications",
        "Mining, Quarrying, and Oil and Gas Extraction",
        "Non-profit",
        "Other Services (except Public Administration)",
        "Pharmaceuticals",
        "Professional, Scientific, and Technical Services",
        "Real Estate and Rental and Leasing",
        "Retail Trade",
        "Software as a Service (SaaS)",
        "Telecommunications",
        "Transportation and Warehousing",
        "Wholesale Trade",
    ]
)

DEPARTMENT_LEVEL_OPTIONS: List[str] = ["Board", "Management", "Team Lead", "Staff"]

BUSINESS_DOMAIN_OPTIONS: List[str] = [
    "Finance",
    "IT",
    "Risk",
    "Supply Chain",
    "HR",
    "Marketing",
    "Legal",
    "Operations",
]

AI_STAGE_OPTIONS: List[str] = [
    "We have no experience with AI",
    "We are currently exploring possibilities",
    "We already have concrete ideas",
    "We have started implementation",
]

CHALLENGE_OPTIONS: List[str] = [
    "Too much admin work",
    "Unreliable reporting",
    "Staff shortages",
    "Poor lead generation",
    "Overwhelmed customer support",
    "Operational inefficiency",
    "Difficulty analyzing data",
    "Low marketing ROI",
]

SOLUTION_OPTIONS: List[str] = [
    "Smart Assistant",
    "Process Automation",
    "Data Analytics",
    "AI-Powered CRM",
    "Marketing AI",
    "HR Automation",
]

TIMELINE_OPTIONS: List[str] = ["ASAP", "Within 3 months", "3-6 months", "6-12 months"]

DEFAULT_BUDGET = "20000"

CHALLENGE_CLARIFICATION_MAX_LENGTH = 300
AI_USE_CASE_MAX_LENGTH = 500

DOMAIN_SEPARATOR = ", "

DRAFT_KEY = "funnel_draft"

GUIDE_ERROR_TEXT = "Sorry, there was an issue fetching AI suggestions. Please proceed with the form."
GUIDE_FALLBACK_TEXT = (
    "I'm having a little trouble thinking of guidance right now. "
    "Please focus on the questions, and I'll catch up when I can."
)
SUMMARY_ERROR_TEXT = "Sorry, I couldn't analyze the website. Please provide a summary manually."
SUMMARY_REGENERATE_ERROR_TEXT = (
    "Sorry, I couldn't regenerate the summary. Please try again or fill it in manually."
)
QUOTE_ERROR_TEXT = "Error generating quote."
SUBMISSION_ERROR_TEXT = "We couldn't save your request. Please try again."
PAYMENT_ERROR_TEXT = "Payment could not be completed. Please try again."
