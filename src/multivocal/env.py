"""Per-turn execution context threaded through the pipeline."""

from __future__ import annotations

import contextlib
from collections.abc import Generator
from contextvars import ContextVar
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any

from multivocal.config import ConfigDocument
from multivocal.services import Services
from multivocal.types import Parameters

if TYPE_CHECKING:
    from multivocal.contexts import ContextDescriptor
    from multivocal.sdk import Platform, TurnRequest, TurnStorage
    from multivocal.response import ResponseRecord
    from multivocal.voice import Voice

INTENT_PREFIX = "Intent."
ACTION_PREFIX = "Action."

_turn_context: ContextVar[Env] = ContextVar("turn")


@dataclass
class Env:
    """Mutable record owned by exactly one in-flight turn."""

    request: TurnRequest
    platform: Platform
    storage: TurnStorage
    services: Services = field(default_factory=Services)
    config: ConfigDocument = field(default_factory=ConfigDocument)
    parameters: Parameters = field(default_factory=dict)
    contexts_in: dict[str, ContextDescriptor] = field(default_factory=dict)
    intent: str | None = None
    action: str | None = None
    requested_voice_name: str | None = None
    voice: Voice | None = None
    handler_key: str | None = None
    response: ResponseRecord | None = None
    response_suffix: ResponseRecord | None = None
    msg: str | None = None
    msg_template: str | None = None
    suffix: str | None = None
    suffix_template: str | None = None
    ssml: str | None = None
    ssml_template: str | None = None
    txt: str | None = None
    txt_template: str | None = None
    reprompt_count: int | None = None
    reprompt_final: bool | None = None
    should_close: bool = False
    sent: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    def template_context(self) -> dict[str, Any]:
        """Expose every env field, plus builder-provided extras, to templates."""

        context: dict[str, Any] = {item.name: getattr(self, item.name) for item in fields(self)}
        for key, value in self.extra.items():
            context.setdefault(key, value)
        context["env"] = self
        return context


def current_turn() -> str:
    """Describe the turn running in this task for log records."""

    env = _turn_context.get(None)
    if env is None:
        return "-"
    return f"{env.intent or '-'}|{env.action or '-'}"


@contextlib.contextmanager
def bind_turn(env: Env) -> Generator[Env, None, None]:
    token = _turn_context.set(env)
    try:
        yield env
    finally:
        _turn_context.reset(token)
