"""Website fetching and LLM summarization for the company profile step."""

import os
from typing import List, Optional, Tuple

import httpx
from bs4 import BeautifulSoup

from leadfunnel.llm.router import LLMRouter, LLMUnavailable, router as default_router
from leadfunnel.schemas import WebsiteSummary
from leadfunnel.validation import normalize_website

DEFAULT_TIMEOUT = float(os.getenv("WEBSITE_FETCH_TIMEOUT", "15"))
MAX_CONTENT_CHARS = 12000

SUMMARY_SYSTEM_PROMPT = "You are a business analyst who returns structured responses in the exact format requested."

SUMMARY_PROMPT = """As a business analyst, please analyze the following website content:

{content}

Based on this content, provide two things:

1. A comprehensive professional summary (5-7 sentences) that covers the company's core business and mission, their main products or services, their target audience and market positioning, their unique value proposition, notable technologies or approaches, and their industry focus and business model (B2B, B2C, etc.).

2. A list of up to five factual keywords or descriptive phrases capturing business model, industry vertical, technology focus, market positioning and target audience.

IMPORTANT: Your entire response must follow this structure exactly, with no extra text or markdown:
SUMMARY_START
[The generated summary]
SUMMARY_END
INSIGHTS_START
[First insight on one line]
[Second insight on another line]
[Third insight on a third line]
INSIGHTS_END"""


class WebsiteSummaryError(RuntimeError):
    """Raised when a website cannot be fetched or summarized."""


def extract_text(html: str) -> str:
    """Reduce a page to the parts worth sending to the model."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    def _meta(name: str) -> str:
        tag = soup.find("meta", attrs={"name": name})
        return (tag.get("content") or "").strip() if tag else ""

    def _texts(name: str) -> str:
        return " ".join(el.get_text(" ", strip=True) for el in soup.find_all(name))

    title = soup.title.get_text(strip=True) if soup.title else ""
    return "\n".join(
        [
            f"Website Title: {title}",
            f"Meta Description: {_meta('description')}",
            f"Meta Keywords: {_meta('keywords')}",
            f"Main Headings: {_texts('h1')}",
            f"Subheadings: {_texts('h2')}",
            f"Content: {_texts('p')}",
        ]
    )


async def fetch_website_content(url: str, *, client: Optional[httpx.AsyncClient] = None) -> str:
    full_url = normalize_website(url.strip())
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT, follow_redirects=True) as owned:
                response = await owned.get(full_url)
        else:
            response = await client.get(full_url)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise WebsiteSummaryError(f"Failed to fetch website {full_url}: {exc}") from exc
    return extract_text(response.text)[:MAX_CONTENT_CHARS]


def parse_summary(text: str) -> Tuple[str, List[str]]:
    markers = ("SUMMARY_START", "SUMMARY_END", "INSIGHTS_START", "INSIGHTS_END")
    if not all(marker in text for marker in markers):
        raise WebsiteSummaryError("Model response did not follow the expected format")
    summary = text.split("SUMMARY_START", 1)[1].split("SUMMARY_END", 1)[0].strip()
    insights_text = text.split("INSIGHTS_START", 1)[1].split("INSIGHTS_END", 1)[0].strip()
    insights = [line.strip() for line in insights_text.splitlines() if line.strip()]
    return summary, insights


async def summarize(url: str, *, llm: Optional[LLMRouter] = None) -> WebsiteSummary:
    llm = llm or default_router
    content = await fetch_website_content(url)
    try:
        result = await llm.complete(
            SUMMARY_PROMPT.format(content=content),
            {"system_prompt": SUMMARY_SYSTEM_PROMPT, "temperature": 0.7, "tier": "fast"},
        )
    except LLMUnavailable as exc:
        raise WebsiteSummaryError(str(exc)) from exc
    summary, insights = parse_summary(result["output"])
    return WebsiteSummary(summary=summary, insights=insights)
