import logging
import time
from typing import Any, Callable, Optional

import orjson

from ..errors import InvalidInput
from ..storage.repo import Repo
from ..storage.schema import GenericResult, SheetResult, TaskKind, TaskRecord, TaskStatus
from ..utils.ids import new_id
from . import prompts
from .llm import LLM, Messages

logger = logging.getLogger(__name__)

# Used when the sheets model output is not JSON at all.
SHEET_FALLBACK = {"title": "Sheet", "columns": [], "sample_csv": ""}
DEFAULT_SHEET_TITLE = "Generated Sheet"


def now_ms() -> int:
    return int(time.time() * 1000)


def validate_prompt(payload: Any) -> str:
    prompt = payload.get("prompt") if isinstance(payload, dict) else None
    if not prompt or not isinstance(prompt, str):
        raise InvalidInput("Missing prompt")
    return prompt


class Agent:
    """Base agent: validate, register a running task, call the model, finalize.

    The task is written twice by the request that created it: once as
    ``running`` before the model call and once with its terminal state.
    """

    kind: TaskKind
    temperature: float
    json_mode = False

    def __init__(self, repo: Repo, llm: LLM, id_factory: Callable[[], str] = new_id,
                 clock: Callable[[], int] = now_ms):
        self.repo = repo
        self.llm = llm
        self.id_factory = id_factory
        self.clock = clock

    def messages(self, prompt: str) -> Messages:
        raise NotImplementedError

    def normalize(self, raw: Optional[str]):
        raise NotImplementedError

    async def run(self, payload: Any) -> TaskRecord:
        prompt = validate_prompt(payload)
        rec = TaskRecord(id=self.id_factory(), status=TaskStatus.RUNNING, kind=self.kind, created_at=self.clock())
        self.repo.save(rec)
        logger.info("task %s (%s) running", rec.id, self.kind.value)

        try:
            raw = await self.llm.chat(self.messages(prompt), self.temperature, json_mode=self.json_mode)
        except Exception as e:
            self.repo.set_status(rec.id, TaskStatus.ERROR, error=str(e) or type(e).__name__)
            logger.warning("task %s (%s) failed: %s", rec.id, self.kind.value, e)
            raise

        done = self.repo.set_result(rec.id, self.normalize(raw))
        logger.info("task %s (%s) done", rec.id, self.kind.value)
        return done


class GenericAgent(Agent):
    kind = TaskKind.GENERIC
    temperature = prompts.GENERIC_TEMPERATURE

    def messages(self, prompt: str) -> Messages:
        return prompts.generic_messages(prompt)

    def normalize(self, raw: Optional[str]) -> GenericResult:
        return GenericResult(answer=(raw or "").strip())


class SheetsAgent(Agent):
    kind = TaskKind.SHEETS
    temperature = prompts.SHEETS_TEMPERATURE
    json_mode = True

    def messages(self, prompt: str) -> Messages:
        return prompts.sheets_messages(prompt)

    def normalize(self, raw: Optional[str]) -> SheetResult:
        return normalize_sheet(raw)


def normalize_sheet(raw: Optional[str]) -> SheetResult:
    """Coerce model output into a SheetResult. Never raises on bad output."""
    try:
        parsed = orjson.loads(raw or "{}")
    except orjson.JSONDecodeError:
        logger.info("sheets output is not JSON, using fallback")
        parsed = dict(SHEET_FALLBACK)
    if not isinstance(parsed, dict):
        parsed = {}

    title = parsed.get("title")
    columns = parsed.get("columns")
    sample_csv = parsed.get("sample_csv")
    return SheetResult(
        title=title if title and isinstance(title, str) else DEFAULT_SHEET_TITLE,
        columns=columns if isinstance(columns, list) else [],
        sample_csv=sample_csv if sample_csv and isinstance(sample_csv, str) else "",
    )
