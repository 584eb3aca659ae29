"""Connector modules for chat backends."""

from .langchain_adapter import message_from_ai
from .ollama_connector import OllamaConnector
from .transport import ChatTransport

__all__ = [
    'ChatTransport',
    'OllamaConnector',
    'message_from_ai'
]
