import asyncio
from datetime import datetime

import pytest

from leadfunnel.constants import (
    AI_USE_CASE_MAX_LENGTH,
    CHALLENGE_CLARIFICATION_MAX_LENGTH,
    GUIDE_ERROR_TEXT,
    PAYMENT_ERROR_TEXT,
    SUMMARY_ERROR_TEXT,
    SUMMARY_REGENERATE_ERROR_TEXT,
)
from leadfunnel.drafts import FileDraftStore
from leadfunnel.schemas import FormData, GuideContent, SubmissionOut, WebsiteSummary
from leadfunnel.steps import Step
from leadfunnel.wizard import FUNNEL, LANDING, SubmissionFailed, WizardController

pytestmark = pytest.mark.asyncio

VALID_BUSINESS_INFO = {
    "name": "Ada Lovelace",
    "email": "a@b.com",
    "company_name": "Acme",
    "website": "acme.com",
    "role": "CTO",
}


class FakeGuide:
    def __init__(self):
        self.fetches = []
        self.summaries = []
        self.gates = {}
        self.guide_error = None
        self.summary_error = None

    def initial_text(self, step):
        return f"placeholder {int(step)}"

    async def fetch_guide(self, step, form):
        self.fetches.append(step)
        gate = self.gates.get(step)
        if gate is not None:
            await gate.wait()
        if self.guide_error:
            raise self.guide_error
        return GuideContent(guide_text=f"guide {int(step)}", suggestions=[f"tip {int(step)}"])

    async def summarize_website(self, url):
        self.summaries.append(url)
        if self.summary_error:
            raise self.summary_error
        return WebsiteSummary(summary="Acme builds rockets.", insights=["B2B", "Aerospace"])


class FakeGateway:
    def __init__(self, error=None):
        self.created = []
        self.error = error

    async def create(self, form):
        if self.error:
            raise self.error
        self.created.append(form)
        return SubmissionOut.model_validate(
            {
                **form.model_dump(),
                "id": f"sub-{len(self.created)}",
                "submitted_at": datetime.utcnow(),
                "status": "new",
                "is_quote_loading": True,
                "generated_quote": "",
                "internal_notes": "",
            }
        )


class FakePayment:
    def __init__(self, result):
        self.result = result

    async def charge(self):
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture
def guide():
    return FakeGuide()


@pytest.fixture
def drafts(tmp_path):
    return FileDraftStore(tmp_path)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def wizard(guide, drafts, gateway):
    return WizardController(guide, drafts, gateway)


async def advance_to(wizard, step):
    while wizard.step < step:
        assert wizard.next(), wizard.errors


async def test_start_shows_placeholder_then_fetched_guide(wizard, drafts):
    wizard.start()

    assert wizard.page == FUNNEL
    assert wizard.step == Step.BUSINESS_INFO
    assert wizard.form_data == FormData()
    assert wizard.guide.guide_text == "placeholder 1"
    assert wizard.is_guide_loading

    await wizard.settle()

    assert wizard.guide.guide_text == "guide 1"
    assert wizard.guide.suggestions == ["tip 1"]
    assert not wizard.is_guide_loading
    assert drafts.load().current_step == Step.BUSINESS_INFO


async def test_invalid_email_blocks_navigation_until_fixed(wizard):
    wizard.start()
    wizard.update_form_data({**VALID_BUSINESS_INFO, "email": "not-an-email"})

    assert wizard.next() is False
    assert wizard.step == Step.BUSINESS_INFO
    assert wizard.errors == {"email": "Please enter a valid email address."}

    wizard.input_field("email", "a@b.com")
    assert "email" not in wizard.errors

    assert wizard.next() is True
    assert wizard.step == Step.COMPANY_PROFILE
    assert wizard.errors == {}
    await wizard.settle()


async def test_patch_clears_only_touched_errors(wizard):
    wizard.start()
    assert wizard.next() is False
    assert set(wizard.errors) == {"name", "email", "company_name", "website", "role"}

    wizard.update_form_data({"name": "Ada", "role": "CTO"})

    assert set(wizard.errors) == {"email", "company_name", "website"}
    await wizard.settle()


async def test_company_summary_is_requested_once(wizard, guide):
    wizard.start()
    wizard.update_form_data(VALID_BUSINESS_INFO)
    await advance_to(wizard, Step.COMPANY_PROFILE)

    assert wizard.is_generating_summary
    wizard.update_form_data({"phone": "123"})
    wizard.update_form_data({"team_size": "11-50"})
    await wizard.settle()

    assert guide.summaries == ["acme.com"]
    assert wizard.form_data.company_summary == "Acme builds rockets."
    assert wizard.form_data.website_insights == ["B2B", "Aerospace"]
    assert not wizard.is_generating_summary

    wizard.update_form_data({"phone": "456"})
    await wizard.settle()
    assert guide.summaries == ["acme.com"]

    wizard.back()
    assert wizard.next() is True
    assert wizard.step == Step.COMPANY_PROFILE
    assert not wizard.is_generating_summary
    await wizard.settle()
    assert guide.summaries == ["acme.com"]


async def test_company_summary_failure_shows_apology(wizard, guide):
    guide.summary_error = RuntimeError("unreachable")
    wizard.start()
    wizard.update_form_data(VALID_BUSINESS_INFO)
    await advance_to(wizard, Step.COMPANY_PROFILE)
    await wizard.settle()

    assert wizard.form_data.company_summary == SUMMARY_ERROR_TEXT
    assert guide.summaries == ["acme.com"]


async def test_regenerate_summary_failure_uses_regenerate_apology(wizard, guide):
    wizard.start()
    wizard.update_form_data(VALID_BUSINESS_INFO)
    await advance_to(wizard, Step.COMPANY_PROFILE)
    await wizard.settle()

    guide.summary_error = RuntimeError("timeout")
    await wizard.regenerate_summary()

    assert wizard.form_data.company_summary == SUMMARY_REGENERATE_ERROR_TEXT
    assert guide.summaries == ["acme.com", "acme.com"]


async def test_stale_guide_result_is_discarded(wizard, guide):
    gate = asyncio.Event()
    guide.gates[Step.COMPANY_PROFILE] = gate
    wizard.start()
    wizard.update_form_data(VALID_BUSINESS_INFO)
    await advance_to(wizard, Step.COMPANY_PROFILE)

    wizard.back()
    assert wizard.guide.guide_text == "placeholder 1"

    for _ in range(3):
        await asyncio.sleep(0)
    assert wizard.guide.guide_text == "guide 1"

    gate.set()
    await wizard.settle()

    assert guide.fetches[-2:] == [Step.COMPANY_PROFILE, Step.BUSINESS_INFO]
    assert wizard.step == Step.BUSINESS_INFO
    assert wizard.guide.guide_text == "guide 1"
    assert not wizard.is_guide_loading


async def test_guide_failure_shows_apology(wizard, guide):
    guide.guide_error = RuntimeError("model down")
    wizard.start()
    await wizard.settle()

    assert wizard.guide.guide_text == GUIDE_ERROR_TEXT
    assert wizard.guide.suggestions == []
    assert not wizard.is_guide_loading


async def test_back_from_first_step_returns_to_landing(wizard):
    wizard.start()
    wizard.back()

    assert wizard.page == LANDING
    assert wizard.step == Step.BUSINESS_INFO
    await wizard.settle()


async def test_next_does_not_leave_summary(wizard, drafts):
    drafts.save(FormData(**VALID_BUSINESS_INFO), Step.SUMMARY)

    assert wizard.has_resumable_draft()
    assert wizard.resume() is True
    assert wizard.step == Step.SUMMARY
    assert wizard.form_data.company_name == "Acme"

    assert wizard.next() is False
    assert wizard.step == Step.SUMMARY
    await wizard.settle()


async def test_resume_without_valid_draft_starts_fresh(wizard, drafts):
    drafts.path.parent.mkdir(parents=True, exist_ok=True)
    drafts.path.write_text("{not json", encoding="utf-8")

    assert wizard.has_resumable_draft() is False
    assert wizard.resume() is False
    assert wizard.page == FUNNEL
    assert wizard.step == Step.BUSINESS_INFO
    await wizard.settle()


async def test_input_field_truncates_long_text(wizard):
    wizard.start()
    wizard.input_field("challenge_clarification", "x" * 400)
    wizard.input_field("ai_use_case", "y" * 600)
    wizard.input_field("company_summary", "z" * 700)

    assert len(wizard.form_data.challenge_clarification) == CHALLENGE_CLARIFICATION_MAX_LENGTH
    assert len(wizard.form_data.ai_use_case) == AI_USE_CASE_MAX_LENGTH
    assert len(wizard.form_data.company_summary) == 700
    await wizard.settle()


async def test_admin_mode_suppresses_draft_writes(wizard, drafts):
    wizard.start()
    wizard.enter_admin()
    wizard.update_form_data({"name": "Grace"})

    assert drafts.load().form_data.name == ""

    wizard.leave_admin()
    wizard.update_form_data({"role": "CEO"})
    assert drafts.load().form_data.name == "Grace"
    await wizard.settle()


async def test_full_funnel_submits_and_clears_draft(guide, drafts, gateway):
    sent = []

    async def mailer(email, name, company_name):
        sent.append((email, name, company_name))

    wizard = WizardController(guide, drafts, gateway, mailer=mailer)
    wizard.start()
    wizard.update_form_data(VALID_BUSINESS_INFO)

    await advance_to(wizard, Step.INDUSTRY)
    wizard.apply_suggestion("Software")
    wizard.apply_suggestion("Software")
    wizard.apply_suggestion("Retail")
    assert wizard.form_data.industries == ["Retail"]

    await advance_to(wizard, Step.CHALLENGES)
    wizard.apply_suggestion("Manual data entry")

    await advance_to(wizard, Step.TIMING_BUDGET)
    wizard.apply_suggestion("ASAP")
    wizard.apply_suggestion("€50,000")
    assert wizard.form_data.timeline == "ASAP"
    assert wizard.form_data.budget == "50000"

    await advance_to(wizard, Step.SUMMARY)
    await wizard.settle()
    wizard.proceed_to_payment()
    assert wizard.step == Step.PAYMENT
    assert drafts.load().current_step == Step.SUMMARY

    submission = await wizard.complete_payment()
    await wizard.settle()

    assert submission.status == "new"
    assert submission.is_quote_loading is True
    assert submission.generated_quote == ""
    assert wizard.submission == submission
    assert wizard.step == Step.CONFIRMATION
    assert drafts.load() is None
    assert gateway.created[0].challenges == ["Manual data entry"]
    assert gateway.created[0].company_summary == "Acme builds rockets."
    assert sent == [("a@b.com", "Ada Lovelace", "Acme")]


async def test_submission_failure_keeps_draft_and_step(guide, drafts):
    wizard = WizardController(guide, drafts, FakeGateway(error=RuntimeError("503")))
    wizard.start()
    wizard.update_form_data(VALID_BUSINESS_INFO)
    await advance_to(wizard, Step.SUMMARY)
    wizard.proceed_to_payment()

    with pytest.raises(SubmissionFailed):
        await wizard.complete_payment()

    assert wizard.step == Step.PAYMENT
    assert wizard.submission is None
    assert wizard.submission_error
    assert drafts.load() is not None
    await wizard.settle()


async def test_confirmation_email_failure_does_not_fail_submission(guide, drafts, gateway):
    async def mailer(email, name, company_name):
        raise RuntimeError("Email API URL not configured")

    wizard = WizardController(guide, drafts, gateway, mailer=mailer)
    wizard.start()
    wizard.update_form_data(VALID_BUSINESS_INFO)
    await advance_to(wizard, Step.SUMMARY)
    wizard.proceed_to_payment()

    await wizard.complete_payment()
    await wizard.settle()

    assert wizard.step == Step.CONFIRMATION


async def test_declined_payment_stays_on_payment(wizard, gateway):
    wizard.start()
    wizard.update_form_data(VALID_BUSINESS_INFO)
    await advance_to(wizard, Step.SUMMARY)
    wizard.proceed_to_payment()

    assert await wizard.pay(FakePayment(False)) is False
    assert await wizard.pay(FakePayment(RuntimeError("card declined"))) is False
    assert wizard.payment_error == PAYMENT_ERROR_TEXT
    assert wizard.step == Step.PAYMENT
    assert gateway.created == []

    assert await wizard.pay(FakePayment(True)) is True
    assert wizard.payment_error is None
    assert wizard.step == Step.CONFIRMATION
    await wizard.settle()


async def test_title_and_progress_follow_the_step(wizard):
    wizard.start()
    assert wizard.title == "Business Info"
    assert wizard.progress == pytest.approx(1 / 9)

    wizard.proceed_to_payment()
    assert wizard.title == "Payment"
    assert wizard.progress == 1.0
    await wizard.settle()


async def test_leaving_admin_refetches_the_guide(wizard, guide):
    wizard.start()
    await wizard.settle()
    wizard.enter_admin()

    wizard.leave_admin()
    assert wizard.guide.guide_text == "placeholder 1"
    assert wizard.is_guide_loading

    await wizard.settle()
    assert guide.fetches == [Step.BUSINESS_INFO, Step.BUSINESS_INFO]
    assert wizard.guide.guide_text == "guide 1"


async def test_resume_clears_previous_errors(wizard, drafts):
    wizard.start()
    wizard.update_form_data(VALID_BUSINESS_INFO)
    await advance_to(wizard, Step.SUMMARY)
    wizard.proceed_to_payment()
    assert await wizard.pay(FakePayment(False)) is False
    wizard.submission_error = "previous failure"

    assert wizard.resume() is True
    assert wizard.step == Step.SUMMARY
    assert wizard.payment_error is None
    assert wizard.submission_error is None
    assert wizard.submission is None
    await wizard.settle()
