from .base import ChatClient, ChatMessage
from .hosted_client import HostedChatClient
from .local_client import LocalChatClient
from .model_loader import ApiKeyManager, ModelLoader, build_chat_client

__all__ = [
    "ChatClient",
    "ChatMessage",
    "HostedChatClient",
    "LocalChatClient",
    "ApiKeyManager",
    "ModelLoader",
    "build_chat_client",
]
