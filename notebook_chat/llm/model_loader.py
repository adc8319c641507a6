import os
from typing import Optional

from dotenv import load_dotenv
from langchain_groq import ChatGroq

from notebook_chat.exception import PreconditionError
from notebook_chat.llm.base import ChatClient
from notebook_chat.llm.hosted_client import HostedChatClient
from notebook_chat.llm.local_client import LocalChatClient
from notebook_chat.logger import GLOBAL_LOGGER as log
from notebook_chat.utils.config_loader import AppSettings, load_settings


class ApiKeyManager:
    REQUIRED = ["GROQ_API_KEY"]

    def __init__(self, required: Optional[list] = None):
        load_dotenv()
        self.required = self.REQUIRED if required is None else required
        self.keys = {}

        for k in self.required:
            if val := os.getenv(k):
                self.keys[k] = val
                log.info("Loaded %s from env", k)
            else:
                log.error("Missing required API key: %s", k)

        if len(self.keys) != len(self.required):
            missing = [k for k in self.required if k not in self.keys]
            raise PreconditionError(
                f"Missing API keys: {', '.join(missing)}. Please add them to your environment or .env file."
            )

    def get(self, key: str) -> str:
        return self.keys[key]


class ModelLoader:
    """Builds the configured chat client; the provider is fixed at construction."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self.settings = settings or load_settings()
        log.info("Config loaded | llm_provider=%s", self.settings.llm.provider)

    def load_chat_model(self) -> ChatGroq:
        cfg = self.settings.llm.hosted
        api_key = ApiKeyManager().get("GROQ_API_KEY")
        log.info("Loading hosted LLM | model=%s", cfg.model_name)
        return ChatGroq(
            model=cfg.model_name,
            api_key=api_key,
            temperature=cfg.temperature,
            max_tokens=cfg.max_tokens,
        )

    def load_chat_client(self) -> ChatClient:
        llm_cfg = self.settings.llm
        if llm_cfg.provider == "local":
            log.info("Using local LLM server | url=%s", llm_cfg.local.server_url)
            return LocalChatClient(
                settings=llm_cfg.local, history_limit=llm_cfg.history_limit
            )
        return HostedChatClient(
            chat_model=self.load_chat_model(),
            history_limit=llm_cfg.history_limit,
            api_key=os.getenv("GROQ_API_KEY"),
        )


def build_chat_client(settings: Optional[AppSettings] = None) -> ChatClient:
    return ModelLoader(settings).load_chat_client()
