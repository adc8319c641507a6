import asyncio
import base64
import os
from typing import Optional

from groq import AsyncGroq

from notebook_chat.exception import LLMClientError, PreconditionError
from notebook_chat.logger import GLOBAL_LOGGER as log
from notebook_chat.prompts.prompt_library import OCR_PROMPT
from notebook_chat.utils.config_loader import OCRSettings


class GroqVisionOCR:
    """
    OCR through a Groq-hosted vision model. One image per request; a
    semaphore bounds concurrent requests across the whole process.
    """

    def __init__(
        self,
        settings: Optional[OCRSettings] = None,
        api_key: Optional[str] = None,
        client: Optional[AsyncGroq] = None,
    ):
        self.settings = settings or OCRSettings()
        self._api_key = api_key
        self._client = client
        self.semaphore = asyncio.Semaphore(self.settings.max_concurrency)

    def get_client(self) -> AsyncGroq:
        if self._client is None:
            api_key = self._api_key or os.getenv("GROQ_API_KEY")
            if not api_key:
                raise PreconditionError("GROQ_API_KEY environment variable not set.")
            self._client = AsyncGroq(api_key=api_key)
        return self._client

    async def extract_text(self, image: bytes, media_type: str) -> str:
        client = self.get_client()
        b64 = base64.b64encode(image).decode("utf-8")
        message = [
            {"type": "text", "text": OCR_PROMPT},
            {
                "type": "image_url",
                "image_url": {"url": f"data:{media_type};base64,{b64}"},
            },
        ]

        try:
            async with self.semaphore:
                completion = await client.chat.completions.create(
                    model=self.settings.model,
                    messages=[{"role": "user", "content": message}],
                    max_tokens=self.settings.max_tokens,
                    temperature=self.settings.temperature,
                )
        except Exception as e:
            log.warning("Groq OCR request failed | error=%s", str(e))
            raise LLMClientError(f"OCR request failed: {e}", e) from e

        content = completion.choices[0].message.content
        text = content if isinstance(content, str) else str(content or "")
        log.debug("OCR extracted text | chars=%d", len(text))
        return text
