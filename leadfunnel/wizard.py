"""Wizard controller: the step state machine that drives the intake funnel.

The controller owns the current step, the form record and its validation
errors. Every change to the form or the step runs the same side effects:

* while on the funnel (not in admin mode) and before Payment the draft is
  overwritten with the current form and step;
* a step change shows the step's placeholder guide and schedules a guide
  fetch whose result is applied only if no newer fetch was started;
* on Company Profile with a website and no summary yet, one website
  summarization is started.

Collaborator calls run as tasks on the running event loop. Their failures
are logged and replaced with fixed apology texts; the only error surfaced to
the caller is a failed submission. Transitions called with no running loop
still move the step and save the draft, and the guide shows the apology
text since no fetch can be scheduled.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Coroutine, Dict, Optional, Set

from leadfunnel import monitoring
from leadfunnel.constants import (
    AI_USE_CASE_MAX_LENGTH,
    CHALLENGE_CLARIFICATION_MAX_LENGTH,
    GUIDE_ERROR_TEXT,
    PAYMENT_ERROR_TEXT,
    SUBMISSION_ERROR_TEXT,
    SUMMARY_ERROR_TEXT,
    SUMMARY_REGENERATE_ERROR_TEXT,
)
from leadfunnel.schemas import FormData, GuideContent, SubmissionOut
from leadfunnel.steps import FIRST_STEP, LAST_STEP, TOTAL_STEPS, Step, step_title
from leadfunnel.suggestions import apply_suggestion as suggestion_patch
from leadfunnel.validation import validate

logger = logging.getLogger(__name__)

LANDING = "landing"
FUNNEL = "funnel"

INPUT_LIMITS: Dict[str, int] = {
    "challenge_clarification": CHALLENGE_CLARIFICATION_MAX_LENGTH,
    "ai_use_case": AI_USE_CASE_MAX_LENGTH,
}

Mailer = Callable[[str, str, str], Awaitable[Any]]


class SubmissionFailed(RuntimeError):
    """Raised when the finished form could not be handed to the submission gateway."""


class WizardController:
    """Multi-step intake wizard.

    Args:
        guide: provider with ``initial_text(step)``, ``async fetch_guide(step, form)``
            and ``async summarize_website(url)``.
        drafts: draft store with ``save``, ``load`` and ``clear``.
        gateway: submission gateway with ``async create(form)``.
        mailer: optional ``async (email, name, company_name)`` hook sending the
            confirmation email after a successful submission.
    """

    def __init__(self, guide: Any, drafts: Any, gateway: Any, *, mailer: Optional[Mailer] = None) -> None:
        self.guide_provider = guide
        self.drafts = drafts
        self.gateway = gateway
        self.mailer = mailer

        self.page = LANDING
        self.admin_view = False
        self.step = FIRST_STEP
        self.form_data = FormData()
        self.errors: Dict[str, str] = {}
        self.guide: Optional[GuideContent] = None
        self.is_guide_loading = False
        self.is_generating_summary = False
        self.submission: Optional[SubmissionOut] = None
        self.submission_error: Optional[str] = None
        self.payment_error: Optional[str] = None

        self._guide_token = 0
        self._summary_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def title(self) -> str:
        return step_title(self.step)

    @property
    def progress(self) -> float:
        """Share of the numbered steps reached; Payment and Confirmation count as complete."""
        return min(int(self.step), TOTAL_STEPS) / TOTAL_STEPS

    # -- entry -------------------------------------------------------------

    def has_resumable_draft(self) -> bool:
        return self.drafts.load() is not None

    def start(self) -> None:
        """Discard any draft and begin a fresh funnel at the first step."""
        self.drafts.clear()
        self._reset_session(FormData())
        self._enter_funnel(FIRST_STEP)

    def resume(self) -> bool:
        """Restore the stored draft, or start fresh when there is none."""
        draft = self.drafts.load()
        if draft is None:
            self.start()
            return False
        self._reset_session(draft.form_data)
        self._enter_funnel(draft.current_step)
        return True

    def _reset_session(self, form: FormData) -> None:
        self.form_data = form
        self.errors = {}
        self.submission = None
        self.submission_error = None
        self.payment_error = None

    def _enter_funnel(self, step: Step) -> None:
        self.page = FUNNEL
        self.admin_view = False
        self._set_step(step)

    def go_to_landing(self) -> None:
        self.page = LANDING

    def enter_admin(self) -> None:
        self.admin_view = True

    def leave_admin(self) -> None:
        """Return to the funnel view; the guide is fetched again for the current step."""
        self.admin_view = False
        self._on_change(step_changed=True)

    # -- navigation --------------------------------------------------------

    def next(self) -> bool:
        """Validate the current step and advance; returns whether the step moved."""
        errors = validate(self.step, self.form_data)
        if errors:
            self.errors = errors
            return False
        self.errors = {}
        if self.step >= Step.SUMMARY:
            return False
        self._set_step(Step(self.step + 1))
        return True

    def back(self) -> None:
        if self.step == FIRST_STEP:
            self.go_to_landing()
            return
        if FIRST_STEP < self.step <= LAST_STEP:
            self._set_step(Step(self.step - 1))

    def proceed_to_payment(self) -> None:
        self._set_step(Step.PAYMENT)

    async def pay(self, provider: Any) -> bool:
        """Charge through ``provider`` and submit the form when the charge succeeds."""
        self.payment_error = None
        try:
            charged = await provider.charge()
        except Exception as exc:
            monitoring.capture_exception(exc)
            charged = False
        if not charged:
            self.payment_error = PAYMENT_ERROR_TEXT
            return False
        await self.complete_payment()
        return True

    async def complete_payment(self) -> SubmissionOut:
        self.submission_error = None
        try:
            submission = await self.gateway.create(self.form_data)
        except Exception as exc:
            monitoring.capture_exception(exc)
            self.submission_error = SUBMISSION_ERROR_TEXT
            raise SubmissionFailed(str(exc) or SUBMISSION_ERROR_TEXT) from exc

        self.submission = submission
        self._set_step(Step.CONFIRMATION)
        self.drafts.clear()
        logger.info(
            "wizard_submitted",
            extra={"wizard": {"submission_id": submission.id, "company": submission.company_name}},
        )
        if self.mailer is not None:
            self._spawn(self._send_confirmation(submission))
        return submission

    async def _send_confirmation(self, submission: SubmissionOut) -> None:
        try:
            await self.mailer(submission.email, submission.name, submission.company_name)
        except Exception as exc:
            monitoring.capture_exception(exc)

    # -- form edits --------------------------------------------------------

    def update_form_data(self, patch: Dict[str, Any]) -> None:
        """Merge ``patch`` (attribute names) into the form and clear the touched errors."""
        if not patch:
            return
        self.form_data = self.form_data.merged(patch)
        for key in patch:
            self.errors.pop(key, None)
        self._on_change()

    def input_field(self, name: str, value: Any) -> None:
        limit = INPUT_LIMITS.get(name)
        if limit is not None and isinstance(value, str):
            value = value[:limit]
        self.update_form_data({name: value})

    def apply_suggestion(self, suggestion: str) -> None:
        self.update_form_data(suggestion_patch(self.step, self.form_data, suggestion))

    async def regenerate_summary(self) -> None:
        if not self.form_data.website or self._summary_task is not None:
            return
        self.is_generating_summary = True
        task = self._spawn(self._summarize(self.form_data.website, SUMMARY_REGENERATE_ERROR_TEXT))
        self._summary_task = task
        await task

    async def settle(self) -> None:
        """Wait until no guide, summary or email task is running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # -- side effects ------------------------------------------------------

    def _in_funnel(self) -> bool:
        return self.page == FUNNEL and not self.admin_view

    def _set_step(self, step: Step) -> None:
        self.step = step
        self._on_change(step_changed=True)

    def _on_change(self, *, step_changed: bool = False) -> None:
        if not self._in_funnel() or self.step >= Step.PAYMENT:
            return
        self.drafts.save(self.form_data, self.step)
        if step_changed:
            self._refresh_guide()
        self._maybe_summarize()

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> Optional[asyncio.Task]:
        """Schedule ``coro`` on the running loop; returns None when there is no loop."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            coro.close()
            monitoring.capture_exception(exc, {"wizard_step": int(self.step)})
            return None
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _refresh_guide(self) -> None:
        self._guide_token += 1
        self.guide = GuideContent(guide_text=self.guide_provider.initial_text(self.step), suggestions=[])
        self.is_guide_loading = True
        if self._spawn(self._load_guide(self._guide_token, self.step, self.form_data)) is None:
            self.guide = GuideContent(guide_text=GUIDE_ERROR_TEXT, suggestions=[])
            self.is_guide_loading = False

    async def _load_guide(self, token: int, step: Step, form: FormData) -> None:
        try:
            content = await self.guide_provider.fetch_guide(step, form)
        except Exception as exc:
            monitoring.capture_exception(exc)
            content = GuideContent(guide_text=GUIDE_ERROR_TEXT, suggestions=[])
        if token != self._guide_token:
            logger.debug("Discarding guide for step %s; a newer request is pending", int(step))
            return
        self.guide = content
        self.is_guide_loading = False

    def _maybe_summarize(self) -> None:
        form = self.form_data
        if self.step != Step.COMPANY_PROFILE or not form.website or form.company_summary:
            return
        if self.errors.get("website") or self._summary_task is not None:
            return
        self.is_generating_summary = True
        self._summary_task = self._spawn(self._summarize(form.website, SUMMARY_ERROR_TEXT))
        if self._summary_task is None:
            self.is_generating_summary = False

    async def _summarize(self, website: str, error_text: str) -> None:
        try:
            result = await self.guide_provider.summarize_website(website)
            patch: Dict[str, Any] = {
                "company_summary": result.summary or error_text,
                "website_insights": result.insights,
            }
        except Exception as exc:
            monitoring.capture_exception(exc)
            patch = {"company_summary": error_text}
        finally:
            self.is_generating_summary = False
            self._summary_task = None
        self.update_form_data(patch)
