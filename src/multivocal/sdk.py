"""Inbound request model and the platform SDK surface the pipeline consumes."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from multivocal.contexts import ContextDescriptor
from multivocal.errors import StorageKeyError
from multivocal.types import Reply

SESSION_NAMESPACE = "session"
USER_NAMESPACE = "user"


class TurnRequest(BaseModel):
    """Fields the core extracts from one inbound platform request."""

    model_config = ConfigDict(extra="ignore")

    intent: str | None = None
    action: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)
    contexts: list[dict[str, Any]] = Field(default_factory=list)
    voice: str | None = None
    session_id: str | None = None
    user_id: str | None = None
    reprompt_count: int = 0
    final_reprompt: bool = False

    @classmethod
    def from_webhook(cls, body: Mapping[str, Any]) -> TurnRequest:
        """Accept a flat request or a Dialogflow v1 style `result` body."""

        result = body.get("result")
        if not isinstance(result, Mapping):
            return cls.model_validate(dict(body))

        metadata = result.get("metadata") or {}
        user = _nested(body, "originalRequest", "data", "user")
        return cls(
            intent=metadata.get("intentName"),
            action=result.get("action"),
            parameters=dict(result.get("parameters") or {}),
            contexts=list(result.get("contexts") or []),
            voice=body.get("voice"),
            session_id=body.get("sessionId"),
            user_id=user.get("userId"),
            reprompt_count=int(body.get("repromptCount", 0) or 0),
            final_reprompt=bool(body.get("finalReprompt", False)),
        )


def _nested(payload: Mapping[str, Any], *keys: str) -> Mapping[str, Any]:
    node: Any = payload
    for key in keys:
        if not isinstance(node, Mapping):
            return {}
        node = node.get(key)
    if isinstance(node, Mapping):
        return node
    return {}


class KeyValueStore(Protocol):
    """Minimal key/value contract for session and user storage."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class InMemoryStore:
    """Dictionary-backed key/value store."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def snapshot(self) -> dict[str, Any]:
        return dict(self._data)


class TurnStorage:
    """Route `session.*` and `user.*` keys to their stores."""

    def __init__(self, session: KeyValueStore | None = None, user: KeyValueStore | None = None) -> None:
        self.session = session if session is not None else InMemoryStore()
        self.user = user if user is not None else InMemoryStore()

    def read(self, key: str, default: Any = None) -> Any:
        store, name = self._resolve(key)
        return store.get(name, default)

    def write(self, key: str, value: Any) -> None:
        store, name = self._resolve(key)
        store.set(name, value)

    def _resolve(self, key: str) -> tuple[KeyValueStore, str]:
        namespace, _, name = key.partition(".")
        if not name:
            raise StorageKeyError(key)
        if namespace == SESSION_NAMESPACE:
            return self.session, name
        if namespace == USER_NAMESPACE:
            return self.user, name
        raise StorageKeyError(key)


class Platform(Protocol):
    """Conversational-platform session primitives."""

    def contexts(self) -> list[ContextDescriptor]: ...

    async def set_context(self, name: str, lifetime: int | None, parameters: dict[str, Any]) -> None: ...

    def reprompt_count(self) -> int: ...

    def is_final_reprompt(self) -> bool: ...

    async def tell(self, reply: Reply) -> None: ...

    async def ask(self, reply: Reply) -> None: ...


class InMemoryPlatform:
    """Platform session that records outgoing contexts and replies."""

    def __init__(
        self,
        contexts: list[Mapping[str, Any] | ContextDescriptor] | None = None,
        *,
        reprompt_count: int = 0,
        final_reprompt: bool = False,
    ) -> None:
        self._contexts = [ContextDescriptor.from_raw(item) for item in contexts or []]
        self._reprompt_count = reprompt_count
        self._final_reprompt = final_reprompt
        self.contexts_out: list[ContextDescriptor] = []
        self.replies: list[tuple[str, Reply]] = []

    @classmethod
    def from_request(cls, request: TurnRequest) -> InMemoryPlatform:
        return cls(
            request.contexts,
            reprompt_count=request.reprompt_count,
            final_reprompt=request.final_reprompt,
        )

    def contexts(self) -> list[ContextDescriptor]:
        return list(self._contexts)

    async def set_context(self, name: str, lifetime: int | None, parameters: dict[str, Any]) -> None:
        self.contexts_out.append(ContextDescriptor(name=name, lifetime=lifetime, parameters=dict(parameters)))

    def reprompt_count(self) -> int:
        return self._reprompt_count

    def is_final_reprompt(self) -> bool:
        return self._final_reprompt

    async def tell(self, reply: Reply) -> None:
        logger.debug("platform.tell chars={}", len(reply.display_text))
        self.replies.append(("tell", reply))

    async def ask(self, reply: Reply) -> None:
        logger.debug("platform.ask chars={}", len(reply.display_text))
        self.replies.append(("ask", reply))

    @property
    def closed(self) -> bool:
        return bool(self.replies) and self.replies[-1][0] == "tell"
