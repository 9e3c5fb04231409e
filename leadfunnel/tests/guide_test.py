import json

import httpx
import pytest

from leadfunnel.agents import website
from leadfunnel.agents.guide import AssistantGuide, STATIC_GUIDES, build_prompt, parse_guide
from leadfunnel.constants import GUIDE_FALLBACK_TEXT
from leadfunnel.llm.router import LLMUnavailable
from leadfunnel.schemas import FormData
from leadfunnel.steps import Step


class FakeLLM:
    def __init__(self, output=None, error=None, configured=True):
        self.output = output
        self.error = error
        self.configured = configured
        self.prompts = []

    def is_configured(self):
        return self.configured

    async def complete(self, prompt, context=None):
        self.prompts.append((prompt, context))
        if self.error:
            raise self.error
        return {"model": "fake", "output": self.output, "cached": False}


def test_parse_guide_accepts_fenced_json():
    raw = '```json\n{"guideText": "Pick a few.", "suggestions": ["Retail", " ", "Logistics"]}\n```'

    content = parse_guide(raw)

    assert content.guide_text == "Pick a few."
    assert content.suggestions == ["Retail", "Logistics"]


@pytest.mark.parametrize(
    "raw",
    ["", "nonsense", "[]", json.dumps({"guideText": "x"}), json.dumps({"suggestions": ["a"]})],
)
def test_parse_guide_rejects_other_shapes(raw):
    assert parse_guide(raw) is None


def test_prompts_carry_form_context():
    form = FormData(
        industries=["Retail"],
        business_domains=["Sales"],
        other_business_domain="Logistics",
        challenges=["Manual data entry"],
        ai_use_case="Invoice OCR",
    )

    assert "Sales, Logistics" in build_prompt(Step.CHALLENGES, form)
    assert "Manual data entry" in build_prompt(Step.SOLUTIONS, form)
    assert "Invoice OCR" in build_prompt(Step.SOLUTIONS, form)
    assert build_prompt(Step.SUMMARY, form) is None


@pytest.mark.asyncio
async def test_static_steps_skip_the_model():
    llm = FakeLLM(output="unused")
    guide = AssistantGuide(llm)

    content = await guide.fetch_guide(Step.TIMING_BUDGET, FormData())

    assert content.guide_text == STATIC_GUIDES[Step.TIMING_BUDGET]
    assert content.suggestions == []
    assert llm.prompts == []


@pytest.mark.asyncio
async def test_model_suggestions_are_returned():
    output = json.dumps({"guideText": "These fit.", "suggestions": ["Retail", "E-commerce"]})
    guide = AssistantGuide(FakeLLM(output=output))

    content = await guide.fetch_guide(Step.INDUSTRY, FormData(company_summary="We sell shoes."))

    assert content.suggestions == ["Retail", "E-commerce"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "llm, step, form",
    [
        (FakeLLM(configured=False), Step.INDUSTRY, FormData()),
        (FakeLLM(error=LLMUnavailable("down")), Step.SOLUTIONS, FormData()),
        (FakeLLM(output="not json"), Step.INDUSTRY, FormData()),
        (FakeLLM(output="unused"), Step.CHALLENGES, FormData()),
    ],
)
async def test_guide_falls_back_without_usable_model(llm, step, form):
    content = await AssistantGuide(llm).fetch_guide(step, form)

    assert content.guide_text == GUIDE_FALLBACK_TEXT
    assert content.suggestions == []


def test_extract_text_keeps_headings_and_paragraphs():
    html = """
    <html><head><title>Acme Rockets</title>
    <meta name="description" content="Reusable launch vehicles">
    <script>var tracking = true;</script></head>
    <body><h1>Launch faster</h1><h2>Our fleet</h2><p>We fly weekly.</p></body></html>
    """

    text = website.extract_text(html)

    assert "Website Title: Acme Rockets" in text
    assert "Meta Description: Reusable launch vehicles" in text
    assert "Main Headings: Launch faster" in text
    assert "Content: We fly weekly." in text
    assert "tracking" not in text


def test_parse_summary_splits_markers():
    raw = "SUMMARY_START\nAcme builds rockets.\nSUMMARY_END\nINSIGHTS_START\nB2B\n\nAerospace\nINSIGHTS_END"

    assert website.parse_summary(raw) == ("Acme builds rockets.", ["B2B", "Aerospace"])

    with pytest.raises(website.WebsiteSummaryError):
        website.parse_summary("Acme builds rockets.")


@pytest.mark.asyncio
async def test_fetch_website_content_normalizes_and_wraps_errors():
    requested = []

    def handler(request):
        requested.append(str(request.url))
        if request.url.host == "down.example":
            return httpx.Response(503)
        return httpx.Response(200, text="<title>Acme</title><p>Hello</p>")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        text = await website.fetch_website_content("acme.example", client=client)
        with pytest.raises(website.WebsiteSummaryError):
            await website.fetch_website_content("down.example", client=client)

    assert requested[0].startswith("https://acme.example")
    assert "Content: Hello" in text


@pytest.mark.asyncio
async def test_summarize_website_uses_model_output(monkeypatch):
    async def fake_fetch(url, client=None):
        return "Website Title: Acme"

    monkeypatch.setattr(website, "fetch_website_content", fake_fetch)
    output = "SUMMARY_START\nAcme builds rockets.\nSUMMARY_END\nINSIGHTS_START\nB2B\nINSIGHTS_END"

    result = await AssistantGuide(FakeLLM(output=output)).summarize_website("acme.example")

    assert result.summary == "Acme builds rockets."
    assert result.insights == ["B2B"]

    with pytest.raises(website.WebsiteSummaryError):
        await AssistantGuide(FakeLLM(error=LLMUnavailable("down"))).summarize_website("acme.example")
