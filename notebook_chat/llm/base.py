from abc import ABC, abstractmethod
from typing import List, Literal, Sequence

from pydantic import BaseModel


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatClient(ABC):
    """
    Stateless request/response wrapper around a chat-completion backend.
    Failures propagate to the caller as LLMClientError.
    """

    def __init__(self, history_limit: int = 10):
        self.history_limit = history_limit

    def trim_history(self, history: Sequence[ChatMessage]) -> List[ChatMessage]:
        if self.history_limit <= 0:
            return []
        return list(history)[-self.history_limit:]

    @abstractmethod
    async def chat(
        self, message: str, history: Sequence[ChatMessage], context_block: str
    ) -> str:
        ...

    @abstractmethod
    async def verify(self) -> bool:
        """True when the backend is reachable with the configured credentials."""
        ...
