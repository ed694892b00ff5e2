"""Pluggy hook namespace and framework hook specifications."""

from __future__ import annotations

import pluggy

from multivocal.env import Env
from multivocal.handlers import HandlerRegistry
from multivocal.types import Stage

MULTIVOCAL_HOOK_NAMESPACE = "multivocal"
hookspec = pluggy.HookspecMarker(MULTIVOCAL_HOOK_NAMESPACE)
hookimpl = pluggy.HookimplMarker(MULTIVOCAL_HOOK_NAMESPACE)


class MultivocalHookSpecs:
    """Hook contract for multivocal extensions."""

    @hookspec
    def register_handlers(self, registry: HandlerRegistry) -> None:
        """Register intent, action, or raw-key handlers."""

    @hookspec
    def register_builders(self, builders: list[Stage]) -> None:
        """Append environment builder stages; they run in list order."""

    @hookspec
    def on_error(self, stage: str, error: Exception, env: Env | None) -> None:
        """Observe pipeline errors from any stage."""
