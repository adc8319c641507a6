from typing import Optional, Sequence

import httpx

from notebook_chat.exception import LLMClientError, PreconditionError
from notebook_chat.llm.base import ChatClient, ChatMessage
from notebook_chat.logger import GLOBAL_LOGGER as log
from notebook_chat.prompts.prompt_library import DEFAULT_SYSTEM_PROMPT
from notebook_chat.utils.config_loader import LocalLLMSettings


class LocalChatClient(ChatClient):
    """Locally running model behind an OpenAI-compatible ``/v1/chat/completions`` server."""

    def __init__(
        self,
        settings: Optional[LocalLLMSettings] = None,
        history_limit: int = 10,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(history_limit=history_limit)
        self.settings = settings or LocalLLMSettings()
        self.system_prompt = system_prompt
        self._http = http_client

    @property
    def server_url(self) -> str:
        return self.settings.server_url.rstrip("/")

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.settings.timeout)
        return self._http

    async def chat(
        self, message: str, history: Sequence[ChatMessage], context_block: str
    ) -> str:
        if not self.server_url:
            raise PreconditionError(
                "Local server URL not configured. Please set llm.local.server_url."
            )

        body = {
            "model": self.settings.model_name,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": context_block},
                *({"role": m.role, "content": m.content} for m in self.trim_history(history)),
                {"role": "user", "content": message},
            ],
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_tokens,
        }

        log.info("Sending request to local LLM server | url=%s", self.server_url)
        try:
            response = await self._client().post(
                f"{self.server_url}/v1/chat/completions", json=body
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            log.error("Local LLM call failed | error=%s", str(e))
            raise LLMClientError(f"Failed to get response from local LLM server: {e}", e) from e
        except ValueError as e:
            raise LLMClientError("Local LLM server returned invalid JSON", e) from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            log.error("Invalid response format from local LLM server")
            raise LLMClientError("Invalid response format from local LLM server", e) from e

        log.info("Generated response with %d characters", len(content))
        return content

    async def verify(self) -> bool:
        try:
            response = await self._client().get(f"{self.server_url}/health")
            return response.is_success
        except httpx.HTTPError as e:
            log.warning("Error connecting to local LLM server | error=%s", str(e))
            return False

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
