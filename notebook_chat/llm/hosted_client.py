from typing import Optional, Sequence

from groq import AsyncGroq
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, HumanMessage

from notebook_chat.exception import LLMClientError
from notebook_chat.llm.base import ChatClient, ChatMessage
from notebook_chat.logger import GLOBAL_LOGGER as log
from notebook_chat.prompts.prompt_library import DEFAULT_SYSTEM_PROMPT, PROMPT_REGISTRY


class HostedChatClient(ChatClient):
    """Hosted chat model (Groq through LangChain)."""

    def __init__(
        self,
        chat_model: BaseChatModel,
        history_limit: int = 10,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        api_key: Optional[str] = None,
    ):
        super().__init__(history_limit=history_limit)
        self.chat_model = chat_model
        self.system_prompt = system_prompt
        self.api_key = api_key
        self.prompt = PROMPT_REGISTRY["document_chat"]

    async def chat(
        self, message: str, history: Sequence[ChatMessage], context_block: str
    ) -> str:
        # Build the langchain compatible chat History
        chat_history = [
            HumanMessage(m.content) if m.role == "user" else AIMessage(m.content)
            for m in self.trim_history(history)
        ]
        messages = self.prompt.format_messages(
            system_prompt=self.system_prompt,
            context=context_block,
            chat_history=chat_history,
            input=message,
        )

        log.info("Sending request to hosted LLM | history=%d", len(chat_history))
        try:
            result = await self.chat_model.ainvoke(messages)
        except Exception as e:
            log.error("Hosted LLM call failed | error=%s", str(e))
            raise LLMClientError(f"Failed to get response from hosted LLM: {e}", e) from e

        content = result.content if isinstance(result.content, str) else str(result.content)
        log.info("Generated response with %d characters", len(content))
        return content

    async def verify(self) -> bool:
        if not self.api_key:
            return False
        try:
            await AsyncGroq(api_key=self.api_key).models.list()
            return True
        except Exception as e:
            log.warning("Error verifying API key | error=%s", str(e))
            return False
