import logging
from typing import Dict, List, Optional

import httpx
from openai import AsyncOpenAI, OpenAIError

from ..config import Settings, settings as default_settings
from ..errors import UpstreamFailure

# Chat adapter over the configured provider. Returns the raw completion text;
# shaping it is the agents' job. Provider errors are raised as UpstreamFailure
# and never retried.

logger = logging.getLogger(__name__)

Messages = List[Dict[str, str]]


class LLM:
    def __init__(self, cfg: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
        cfg = cfg or default_settings
        self.provider = cfg.llm_provider.lower()
        self.model_name = cfg.openai_model  # reused as the ollama model name
        self.ollama_base = cfg.ollama_base_url
        self.openai_api_key = cfg.openai_api_key
        self.transport = transport
        self._openai: AsyncOpenAI | None = None

    async def chat(self, messages: Messages, temperature: float, json_mode: bool = False) -> Optional[str]:
        logger.debug("chat provider=%s model=%s json=%s", self.provider, self.model_name, json_mode)
        if self.provider == "ollama":
            return await self._ollama_chat(messages, temperature, json_mode)
        if self.provider == "openai":
            return await self._openai_chat(messages, temperature, json_mode)
        raise UpstreamFailure(f"Unknown LLM provider: {self.provider}")

    async def aclose(self):
        if self._openai is not None:
            await self._openai.close()
            self._openai = None

    def _openai_client(self) -> AsyncOpenAI:
        if self._openai is None:
            # no timeout and no retries: a hung provider holds the request
            self._openai = AsyncOpenAI(api_key=self.openai_api_key, timeout=None, max_retries=0)
        return self._openai

    async def _openai_chat(self, messages: Messages, temperature: float, json_mode: bool) -> Optional[str]:
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            resp = await self._openai_client().chat.completions.create(
                model=self.model_name or "gpt-4o-mini",
                temperature=temperature,
                messages=messages,
                **kwargs,
            )
        except OpenAIError as e:
            raise UpstreamFailure(str(e)) from e
        if not resp.choices:
            return None
        return resp.choices[0].message.content

    async def _ollama_chat(self, messages: Messages, temperature: float, json_mode: bool) -> Optional[str]:
        url = f"{self.ollama_base.rstrip('/')}/api/chat"
        payload = {
            "model": self.model_name,
            "messages": messages,
            "stream": False,
            "options": {"temperature": temperature},
        }
        if json_mode:
            payload["format"] = "json"
        try:
            async with httpx.AsyncClient(timeout=None, transport=self.transport) as client:
                r = await client.post(url, json=payload)
                r.raise_for_status()
                data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamFailure(f"Ollama error: {e}") from e
        return (data.get("message") or {}).get("content")
