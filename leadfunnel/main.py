"""FastAPI application serving the intake funnel and the admin pipeline."""

import os
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from leadfunnel import analytics, monitoring
from leadfunnel.agents import proposal_gen, website
from leadfunnel.agents.guide import AssistantGuide
from leadfunnel.constants import QUOTE_ERROR_TEXT
from leadfunnel.db import init_db
from leadfunnel.integrations import mailer
from leadfunnel.llm.router import LLMUnavailable
from leadfunnel.orchestrator import QuoteWorkflow
from leadfunnel.proposal import ProposalFormatError
from leadfunnel.schemas import (
    CompanySummaryIn,
    ConfirmationEmailIn,
    FormData,
    GuideContent,
    GuideIn,
    RegenerateIn,
    SendQuoteIn,
    SubmissionOut,
    SubmissionStatus,
    SubmissionUpdate,
    WebsiteSummary,
)
from leadfunnel.submissions import (
    create_submission,
    delete_submission,
    get_submission,
    list_submissions,
    to_out,
    update_submission,
)

API_PORT = int(os.getenv("API_PORT", "8000"))
AUTO_GENERATE_QUOTES = os.getenv("AUTO_GENERATE_QUOTES", "false").lower() in {"1", "true", "yes"}

monitoring.init_monitoring()

guide_provider = AssistantGuide()

app = FastAPI(title="LeadFunnel API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def on_startup():
    await init_db()


@app.get("/healthz")
async def health_check():
    return {"status": "ok"}


async def _require_submission(submission_id: str):
    submission = await get_submission(submission_id)
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")
    return submission


@app.post("/submissions", response_model=SubmissionOut, status_code=201)
async def submit(payload: FormData):
    submission = await create_submission(payload)
    if AUTO_GENERATE_QUOTES:
        QuoteWorkflow(submission.id).enqueue()
    return to_out(submission)


@app.get("/submissions", response_model=List[SubmissionOut])
async def submissions_index():
    return [to_out(row) for row in await list_submissions()]


@app.get("/submissions/stats")
async def submissions_stats(
    start: Optional[str] = Query(None, alias="from"),
    end: Optional[str] = Query(None, alias="to"),
    industries: Optional[str] = None,
    ai_stages: Optional[str] = Query(None, alias="aiStages"),
    team_sizes: Optional[str] = Query(None, alias="teamSizes"),
    budget_min: Optional[int] = Query(None, alias="budgetMin"),
    budget_max: Optional[int] = Query(None, alias="budgetMax"),
    search: Optional[str] = None,
):
    query = analytics.build_query(
        start=start,
        end=end,
        industries=industries,
        ai_stages=ai_stages,
        team_sizes=team_sizes,
        budget_min=budget_min,
        budget_max=budget_max,
        search=search,
    )
    return await analytics.get_stats(query)


@app.get("/submissions/{submission_id}", response_model=SubmissionOut)
async def submission_detail(submission_id: str):
    return to_out(await _require_submission(submission_id))


@app.patch("/submissions/{submission_id}", response_model=SubmissionOut)
async def submission_update(submission_id: str, payload: SubmissionUpdate):
    submission = await update_submission(submission_id, payload)
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")
    return to_out(submission)


@app.delete("/submissions/{submission_id}")
async def submission_delete(submission_id: str):
    if not await delete_submission(submission_id):
        raise HTTPException(status_code=404, detail="Submission not found")
    return {"ok": True}


@app.post("/submissions/{submission_id}/quote", response_model=SubmissionOut)
async def generate_quote(submission_id: str, force: bool = False):
    await _require_submission(submission_id)
    await QuoteWorkflow(submission_id, force=force).run()
    return to_out(await _require_submission(submission_id))


@app.post("/submissions/{submission_id}/quote/regenerate", response_model=SubmissionOut)
async def regenerate_quote(submission_id: str, payload: RegenerateIn):
    brief = payload.executive_brief.strip()
    if not brief:
        raise HTTPException(status_code=400, detail="Executive brief is required")
    submission = await _require_submission(submission_id)
    try:
        quote = await proposal_gen.regenerate_from_brief(submission, brief)
    except (LLMUnavailable, ProposalFormatError) as exc:
        monitoring.capture_exception(exc, {"submission_id": submission_id})
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    updated = await update_submission(submission_id, {"generated_quote": quote})
    return to_out(updated)


@app.post("/submissions/{submission_id}/send", response_model=SubmissionOut)
async def send_quote(submission_id: str, payload: SendQuoteIn):
    submission = await _require_submission(submission_id)
    quote = payload.quote_content or submission.generated_quote or ""
    if not quote.strip() or quote == QUOTE_ERROR_TEXT:
        raise HTTPException(status_code=400, detail="No proposal to send")
    subject = payload.subject or f"Your AI proposal for {submission.company_name}"
    try:
        await mailer.send_quote(submission.email, subject, quote)
    except RuntimeError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    updated = await update_submission(
        submission_id,
        {"status": SubmissionStatus.PROPOSAL_SENT.value, "generated_quote": quote},
    )
    return to_out(updated)


@app.post("/guide", response_model=GuideContent)
async def guide(payload: GuideIn):
    return await guide_provider.fetch_guide(payload.step, payload.form_data)


@app.post("/company-summary", response_model=WebsiteSummary)
async def company_summary(payload: CompanySummaryIn):
    try:
        return await website.summarize(payload.website)
    except website.WebsiteSummaryError as exc:
        monitoring.capture_exception(exc, {"website": payload.website})
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@app.post("/email/confirmation")
async def confirmation_email(payload: ConfirmationEmailIn):
    try:
        await mailer.send_confirmation(payload.email, payload.name, payload.company_name)
    except RuntimeError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return {"ok": True}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=API_PORT)
