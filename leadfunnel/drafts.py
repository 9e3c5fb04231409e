"""Best-effort persistence of the single in-progress wizard draft.

Every store keeps exactly one draft under a fixed key. Writes are full
overwrites of the serialized draft; reads that find nothing, unparsable
data, or a structurally invalid payload report "no draft" instead of
raising.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from redis import Redis

from leadfunnel.constants import DRAFT_KEY
from leadfunnel.schemas import Draft, FormData
from leadfunnel.steps import Step

logger = logging.getLogger(__name__)


def serialize_draft(form: FormData, step: Step) -> str:
    draft = Draft(form_data=form, current_step=step)
    return draft.model_dump_json(by_alias=True)


def parse_draft(raw: Any) -> Optional[Draft]:
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Stored draft is not valid JSON; ignoring it")
        return None
    if not isinstance(parsed, dict) or not isinstance(parsed.get("formData"), dict):
        return None
    try:
        return Draft.model_validate(parsed)
    except ValidationError:
        logger.warning("Stored draft failed validation; ignoring it")
        return None


class DraftStore:
    """Interface for draft persistence: ``save``, ``load`` and ``clear``."""

    def __init__(self, key: str = DRAFT_KEY) -> None:
        self.key = key

    def save(self, form: FormData, step: Step) -> None:
        raise NotImplementedError

    def load(self) -> Optional[Draft]:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class FileDraftStore(DraftStore):
    def __init__(self, directory: Optional[Path] = None, key: str = DRAFT_KEY) -> None:
        super().__init__(key)
        self.directory = Path(directory or os.getenv("FUNNEL_DRAFT_DIR", "data/drafts"))

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def save(self, form: FormData, step: Step) -> None:
        try:
            payload = serialize_draft(form, step)
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{self.key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except Exception:
            logger.exception("Failed to save draft to %s", self.path)

    def load(self) -> Optional[Draft]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except Exception:
            logger.exception("Failed to read draft from %s", self.path)
            return None
        return parse_draft(raw)

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except Exception:
            logger.exception("Failed to clear draft at %s", self.path)


class RedisDraftStore(DraftStore):
    def __init__(self, client: Optional[Redis] = None, key: str = DRAFT_KEY) -> None:
        super().__init__(key)
        self._client = client

    @property
    def client(self) -> Redis:
        if self._client is None:
            self._client = Redis.from_url(os.getenv("REDIS_URL", "redis://localhost:6379/0"))
        return self._client

    def save(self, form: FormData, step: Step) -> None:
        try:
            self.client.set(self.key, serialize_draft(form, step))
        except Exception:
            logger.exception("Failed to save draft to Redis key %s", self.key)

    def load(self) -> Optional[Draft]:
        try:
            raw = self.client.get(self.key)
        except Exception:
            logger.exception("Failed to read draft from Redis key %s", self.key)
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        return parse_draft(raw)

    def clear(self) -> None:
        try:
            self.client.delete(self.key)
        except Exception:
            logger.exception("Failed to clear draft at Redis key %s", self.key)
