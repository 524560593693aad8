import asyncio
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from conftest import FakeLLM
from gateway.errors import InvalidInput, UpstreamFailure
from gateway.services import prompts
from gateway.services.agents import GenericAgent, SheetsAgent, normalize_sheet, validate_prompt
from gateway.storage.repo import Repo
from gateway.storage.schema import SheetResult, TaskKind, TaskStatus


@pytest.mark.parametrize("payload", [None, [], {}, {"prompt": ""}, {"prompt": 5}, {"prompt": ["a"]}, {"prompt": None}])
def test_validate_prompt_rejects(payload):
    with pytest.raises(InvalidInput, match="Missing prompt"):
        validate_prompt(payload)


def test_generic_agent_trims_answer_and_marks_done():
    repo, llm = Repo(), FakeLLM(reply="  Ship it.\n")
    agent = GenericAgent(repo, llm, id_factory=lambda: "task0001", clock=lambda: 42)

    rec = asyncio.run(agent.run({"prompt": "What next?"}))

    assert rec.id == "task0001"
    assert rec.status == TaskStatus.DONE
    assert rec.kind == TaskKind.GENERIC
    assert rec.created_at == 42
    assert rec.result.answer == "Ship it."
    assert repo.get("task0001") == rec

    call = llm.calls[0]
    assert call["temperature"] == prompts.GENERIC_TEMPERATURE
    assert call["json_mode"] is False
    assert call["messages"] == [
        {"role": "system", "content": prompts.GENERIC_SYSTEM},
        {"role": "user", "content": "What next?"},
    ]


def test_generic_agent_empty_completion():
    agent = GenericAgent(Repo(), FakeLLM(reply=None))

    rec = asyncio.run(agent.run({"prompt": "hi"}))

    assert rec.result.answer == ""


def test_invalid_prompt_creates_no_task():
    repo, llm = Repo(), FakeLLM(reply="x")

    with pytest.raises(InvalidInput):
        asyncio.run(GenericAgent(repo, llm).run({"prompt": 3}))

    assert len(repo) == 0
    assert llm.calls == []


def test_upstream_failure_marks_task_error_and_propagates():
    repo = Repo()
    agent = SheetsAgent(repo, FakeLLM(error=UpstreamFailure("provider down")), id_factory=lambda: "task0002")

    with pytest.raises(UpstreamFailure):
        asyncio.run(agent.run({"prompt": "budget"}))

    rec = repo.get("task0002")
    assert rec.status == TaskStatus.ERROR
    assert rec.error == "provider down"
    assert rec.result is None


def test_sheets_agent_requests_json_mode():
    llm = FakeLLM(reply='{"title": "Budget", "columns": [], "sample_csv": "a\\n1"}')

    rec = asyncio.run(SheetsAgent(Repo(), llm).run({"prompt": "monthly budget"}))

    assert rec.kind == TaskKind.SHEETS
    assert rec.result.title == "Budget"
    call = llm.calls[0]
    assert call["json_mode"] is True
    assert call["temperature"] == prompts.SHEETS_TEMPERATURE
    assert call["messages"][0]["content"] == prompts.SHEETS_SYSTEM
    assert call["messages"][1]["content"].endswith("\nRequest: monthly budget")


def test_concurrent_runs_get_distinct_tasks():
    repo = Repo()

    class SlowEcho(FakeLLM):
        async def chat(self, messages, temperature, json_mode=False):
            await asyncio.sleep(0)
            return "echo: " + messages[-1]["content"]

    agent = GenericAgent(repo, SlowEcho())

    async def both():
        return await asyncio.gather(agent.run({"prompt": "one"}), agent.run({"prompt": "two"}))

    a, b = asyncio.run(both())

    assert a.id != b.id
    assert repo.get(a.id).result.answer == "echo: one"
    assert repo.get(b.id).result.answer == "echo: two"


COLUMNS = [{"name": "date", "type": "date", "description": "Day"}]


@pytest.mark.parametrize(
    "raw, expected",
    [
        (
            '{"title": "Sales", "columns": [{"name": "date", "type": "date", "description": "Day"}], "sample_csv": "date\\n2024-01-01"}',
            SheetResult(title="Sales", columns=COLUMNS, sample_csv="date\n2024-01-01"),
        ),
        ("not json at all", SheetResult(title="Sheet", columns=[], sample_csv="")),
        ("```json\n{}\n```", SheetResult(title="Sheet", columns=[], sample_csv="")),
        (None, SheetResult(title="Generated Sheet", columns=[], sample_csv="")),
        ("", SheetResult(title="Generated Sheet", columns=[], sample_csv="")),
        ("{}", SheetResult(title="Generated Sheet", columns=[], sample_csv="")),
        ('{"title": "", "columns": {"name": "x"}, "sample_csv": null}',
         SheetResult(title="Generated Sheet", columns=[], sample_csv="")),
        ('{"title": 7, "columns": "a,b", "sample_csv": ["a"]}',
         SheetResult(title="Generated Sheet", columns=[], sample_csv="")),
        ("[1, 2, 3]", SheetResult(title="Generated Sheet", columns=[], sample_csv="")),
        ('{"title": "Loose", "columns": ["just a name", 3]}',
         SheetResult(title="Loose", columns=["just a name", 3], sample_csv="")),
    ],
)
def test_normalize_sheet(raw, expected):
    assert normalize_sheet(raw) == expected
