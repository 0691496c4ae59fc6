"""Streaming chat-completions client core for a terminal chat UI."""

from streamchat.config import Settings, load_settings
from streamchat.dispatch import Dispatcher, Turn, TurnState
from streamchat.registry import ProviderDescriptor, get_provider, list_providers
from streamchat.store import ConversationStore
from streamchat.types import Language, Message, ProviderConfig, Role

__all__ = [
    "ConversationStore",
    "Dispatcher",
    "Language",
    "Message",
    "ProviderConfig",
    "ProviderDescriptor",
    "Role",
    "Settings",
    "Turn",
    "TurnState",
    "get_provider",
    "list_providers",
    "load_settings",
]
