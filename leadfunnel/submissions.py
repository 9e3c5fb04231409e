"""Submission persistence and the gateways the wizard hands finished forms to."""

import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import httpx
from sqlmodel import select

from leadfunnel import monitoring
from leadfunnel.db import Submission, get_session
from leadfunnel.schemas import FormData, SubmissionOut, SubmissionStatus, SubmissionUpdate

logger = logging.getLogger(__name__)

POST_SUBMISSION_FIELDS = {"generated_quote", "is_quote_loading", "internal_notes"}
DEFAULT_TIMEOUT = float(os.getenv("SUBMISSIONS_API_TIMEOUT", "15"))


class SubmissionGatewayError(RuntimeError):
    """Raised when a remote submission API call fails."""


def to_out(row: Submission) -> SubmissionOut:
    return SubmissionOut.model_validate(row, from_attributes=True)


def _normalize_update(patch: Union[SubmissionUpdate, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(patch, SubmissionUpdate):
        fields = patch.model_dump(exclude_unset=True)
    else:
        fields = SubmissionUpdate.model_validate(patch).model_dump(exclude_unset=True)
    status = fields.get("status")
    if status is not None:
        fields["status"] = SubmissionStatus(status).value
        if status == SubmissionStatus.PROPOSAL_SENT and not fields.get("proposal_sent_at"):
            fields["proposal_sent_at"] = datetime.utcnow()
    return fields


async def create_submission(form: FormData) -> Submission:
    data = form.model_dump(exclude=POST_SUBMISSION_FIELDS)
    submission = Submission(
        **data,
        status=SubmissionStatus.NEW.value,
        is_quote_loading=True,
        generated_quote="",
        internal_notes="",
    )
    async with get_session() as session:
        session.add(submission)
        await session.commit()
        await session.refresh(submission)
    logger.info(
        "submission_created",
        extra={"submission": {"id": submission.id, "company": submission.company_name}},
    )
    return submission


async def list_submissions() -> List[Submission]:
    async with get_session() as session:
        rows = (
            await session.exec(select(Submission).order_by(Submission.submitted_at.desc()))
        ).all()
    return list(rows)


async def get_submission(submission_id: str) -> Optional[Submission]:
    async with get_session() as session:
        return await session.get(Submission, submission_id)


async def update_submission(
    submission_id: str, patch: Union[SubmissionUpdate, Dict[str, Any]]
) -> Optional[Submission]:
    fields = _normalize_update(patch)
    async with get_session() as session:
        submission = await session.get(Submission, submission_id)
        if not submission:
            return None
        for key, value in fields.items():
            setattr(submission, key, value)
        session.add(submission)
        await session.commit()
        await session.refresh(submission)
    logger.info(
        "submission_updated",
        extra={"submission": {"id": submission_id, "fields": sorted(fields)}},
    )
    return submission


async def delete_submission(submission_id: str) -> bool:
    async with get_session() as session:
        submission = await session.get(Submission, submission_id)
        if not submission:
            return False
        await session.delete(submission)
        await session.commit()
    logger.info("submission_deleted", extra={"submission": {"id": submission_id}})
    return True


class DatabaseSubmissionGateway:
    """Submission gateway writing straight to the service database."""

    async def create(self, form: FormData) -> SubmissionOut:
        return to_out(await create_submission(form))

    async def list(self) -> List[SubmissionOut]:
        return [to_out(row) for row in await list_submissions()]

    async def update(
        self, submission_id: str, patch: Union[SubmissionUpdate, Dict[str, Any]]
    ) -> Optional[SubmissionOut]:
        row = await update_submission(submission_id, patch)
        return to_out(row) if row else None

    async def delete(self, submission_id: str) -> bool:
        return await delete_submission(submission_id)


class HttpSubmissionGateway:
    """Submission gateway talking to the submissions REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url or os.getenv("SUBMISSIONS_API_URL", "http://localhost:8000")
        self.transport = transport
        self.timeout = timeout

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.base_url, transport=self.transport, timeout=self.timeout
        ) as client:
            response = await client.request(method, path, **kwargs)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            monitoring.capture_exception(exc)
            raise SubmissionGatewayError(f"Submission API request failed: {exc}") from exc
        return response

    async def create(self, form: FormData) -> SubmissionOut:
        try:
            response = await self._request(
                "POST", "/submissions", json=form.model_dump(mode="json", by_alias=True)
            )
        except httpx.TransportError as exc:
            raise SubmissionGatewayError(f"Submission API unreachable: {exc}") from exc
        return SubmissionOut.model_validate(response.json())

    async def list(self) -> List[SubmissionOut]:
        response = await self._request("GET", "/submissions")
        return [SubmissionOut.model_validate(item) for item in response.json()]

    async def update(
        self, submission_id: str, patch: Union[SubmissionUpdate, Dict[str, Any]]
    ) -> Optional[SubmissionOut]:
        if not isinstance(patch, SubmissionUpdate):
            patch = SubmissionUpdate.model_validate(patch)
        body = patch.model_dump(mode="json", by_alias=True, exclude_unset=True)
        response = await self._request("PATCH", f"/submissions/{submission_id}", json=body)
        return SubmissionOut.model_validate(response.json())

    async def delete(self, submission_id: str) -> bool:
        await self._request("DELETE", f"/submissions/{submission_id}")
        return True
