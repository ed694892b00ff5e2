"""multivocal - turn one assistant request into one spoken and displayed reply."""

from .config import ConfigDocument, StaticConfigSource, YamlConfigSource
from .contexts import ContextDescriptor, MultipleContexts, SingleContext
from .env import Env
from .framework import Multivocal
from .handlers import DEFAULT_KEY, HandlerRegistry
from .hookspecs import hookimpl
from .sdk import InMemoryPlatform, InMemoryStore, TurnRequest, TurnStorage
from .response import ResponseRecord, resolve_content
from .types import Reply
from .voice import Voice

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_KEY",
    "ConfigDocument",
    "ContextDescriptor",
    "Env",
    "HandlerRegistry",
    "InMemoryPlatform",
    "InMemoryStore",
    "Multivocal",
    "MultipleContexts",
    "Reply",
    "ResponseRecord",
    "SingleContext",
    "StaticConfigSource",
    "TurnRequest",
    "TurnStorage",
    "Voice",
    "YamlConfigSource",
    "hookimpl",
    "resolve_content",
]
