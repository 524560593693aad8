"""Shared test fixtures."""

from pathlib import Path
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[1]))

from gateway.config import Settings
from gateway.main import create_app
from gateway.storage.repo import Repo

ALLOWED_ORIGIN = "https://vantaprotocol.app"


class FakeLLM:
    """Stands in for the provider adapter; records every chat call."""

    def __init__(self, reply=None, error=None, replies=None):
        self.reply = reply
        self.error = error
        self.replies = list(replies or [])
        self.calls = []

    async def chat(self, messages, temperature, json_mode=False):
        self.calls.append({"messages": messages, "temperature": temperature, "json_mode": json_mode})
        if self.error is not None:
            raise self.error
        if self.replies:
            return self.replies.pop(0)
        return self.reply


def make_settings(**overrides) -> Settings:
    values = {
        "openai_api_key": "test-key",
        "cors_origins": [ALLOWED_ORIGIN],
        "rate_limit_per_minute": 1000,
        "service_name": "vanta-protocol-backend",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture()
def repo():
    return Repo()


@pytest.fixture()
def llm():
    return FakeLLM(reply="ok")


@pytest.fixture()
def client(repo, llm):
    app = create_app(make_settings(), repo=repo, llm=llm)
    with TestClient(app) as c:
        yield c
