"""Handler registry and deterministic intent/action/default dispatch."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from multivocal.env import ACTION_PREFIX, INTENT_PREFIX
from multivocal.errors import HandlerNotFoundError
from multivocal.types import Handler

if TYPE_CHECKING:
    from multivocal.env import Env

DEFAULT_KEY = "DEFAULT"


class HandlerRegistry:
    """Dispatch keys mapped to async handlers; later registrations overwrite."""

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}

    def register(self, key: str, handler: Handler) -> None:
        if key in self._handlers:
            logger.debug("handler.override key={}", key)
        self._handlers[key] = handler

    def register_intent(self, name: str, handler: Handler) -> None:
        self.register(f"{INTENT_PREFIX}{name}", handler)

    def register_action(self, name: str, handler: Handler) -> None:
        self.register(f"{ACTION_PREFIX}{name}", handler)

    def get(self, key: str) -> Handler | None:
        return self._handlers.get(key)

    def has(self, key: str) -> bool:
        return key in self._handlers

    def keys(self) -> list[str]:
        return sorted(self._handlers)

    def select(self, env: Env) -> tuple[str, Handler]:
        """Pick the first registered key among intent, action, and DEFAULT."""

        candidates = [key for key in (env.intent, env.action, DEFAULT_KEY) if key]
        for key in candidates:
            handler = self._handlers.get(key)
            if handler is not None:
                return key, handler
        raise HandlerNotFoundError(candidates)

    async def dispatch(self, env: Env) -> Env:
        key, handler = self.select(env)
        env.handler_key = key
        logger.info("handler.selected key={}", key)
        try:
            result = await handler(env)
        except Exception:
            logger.opt(exception=True).error("handler.failed key={}", key)
            raise
        return env if result is None else result
