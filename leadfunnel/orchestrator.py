import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from leadfunnel.agents.proposal_gen import draft as draft_proposal
from leadfunnel.constants import QUOTE_ERROR_TEXT
from leadfunnel.submissions import get_submission, update_submission
from leadfunnel import monitoring


@dataclass
class QuoteResult:
    submission_id: str
    generated: bool = False
    skipped: bool = False
    error: Optional[str] = None


class QuoteWorkflow:
    """Generates and stores the proposal for one submission, retrying model failures."""

    def __init__(
        self,
        submission_id: str,
        *,
        force: bool = False,
        max_attempts: int = 3,
        logger: Optional[logging.Logger] = None,
    ):
        self.submission_id = submission_id
        self.force = force
        self.max_attempts = max_attempts
        self.logger = logger or logging.getLogger("workflow")

    async def run(self) -> QuoteResult:
        result = QuoteResult(submission_id=self.submission_id)
        submission = await get_submission(self.submission_id)
        if submission is None:
            raise ValueError(f"Submission {self.submission_id} not found")

        existing = submission.generated_quote or ""
        if existing and existing != QUOTE_ERROR_TEXT and not self.force:
            self._log("quote", "skipped", 0, extra={"reason": "quote_exists"})
            result.skipped = True
            return result

        await update_submission(self.submission_id, {"is_quote_loading": True, "generated_quote": ""})
        try:
            quote = await self._run_with_retry("quote", lambda: draft_proposal(submission))
        except Exception as exc:
            await update_submission(
                self.submission_id, {"is_quote_loading": False, "generated_quote": QUOTE_ERROR_TEXT}
            )
            result.error = str(exc)
            return result

        await update_submission(self.submission_id, {"is_quote_loading": False, "generated_quote": quote})
        result.generated = True
        return result

    def enqueue(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:  # pragma: no cover - requires async context
            self.logger.error(
                "workflow",
                extra={
                    "workflow": {
                        "submission_id": self.submission_id,
                        "step": "enqueue",
                        "status": "failed",
                        "error": str(exc),
                    }
                },
            )
            raise
        loop.create_task(self.run())

    async def _run_with_retry(self, step: str, func):
        last_exc: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            started = time.perf_counter()
            try:
                self._log(step, "start", attempt)
                result = await func()
                duration_ms = (time.perf_counter() - started) * 1000
                self._log(step, "success", attempt, extra={"duration_ms": round(duration_ms, 1)})
                return result
            except Exception as exc:
                last_exc = exc
                self._log(
                    step,
                    "error",
                    attempt,
                    extra={"error": f"Attempt {attempt}: {monitoring.format_exception(exc)}"},
                )
                monitoring.capture_exception(
                    exc, {"workflow": "quote", "submission_id": self.submission_id, "step": step, "attempt": attempt}
                )
                if attempt >= self.max_attempts:
                    raise
                await asyncio.sleep(min(2 ** attempt, 5))
        raise last_exc  # type: ignore[misc]

    def _log(self, step: str, status: str, attempt: int, extra: Optional[Dict[str, Any]] = None) -> None:
        payload = {"submission_id": self.submission_id, "step": step, "status": status, "attempt": attempt}
        if extra:
            payload.update(extra)
        self.logger.info("workflow", extra={"workflow": payload})
