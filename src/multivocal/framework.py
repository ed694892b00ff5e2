"""Hook-first multivocal framework runtime."""

from __future__ import annotations

import random
from collections.abc import Awaitable, Callable
from importlib.metadata import entry_points

import pluggy
from loguru import logger

from multivocal.builtin import handlers as builtin_handlers
from multivocal.config import ConfigSource
from multivocal.delivery import send
from multivocal.env import Env, bind_turn
from multivocal.handlers import HandlerRegistry
from multivocal.hook_runtime import HookRuntime
from multivocal.hookspecs import MULTIVOCAL_HOOK_NAMESPACE, MultivocalHookSpecs
from multivocal.pipeline import build_env
from multivocal.sdk import InMemoryPlatform, Platform, TurnRequest, TurnStorage
from multivocal.response import ResponseService, add_suffix
from multivocal.services import Services
from multivocal.template import TemplateEngine
from multivocal.types import Handler, Stage
from multivocal.voice import select_voice

ENTRY_POINT_GROUP = "multivocal"
BUILTIN_PLUGIN_NAME = "builtin:handlers"


class Multivocal:
    """Turn one platform request into exactly one reply through an ordered stage pipeline."""

    def __init__(
        self,
        config_source: ConfigSource,
        *,
        rng: random.Random | None = None,
        responses: ResponseService | None = None,
        templates: TemplateEngine | None = None,
        load_builtin: bool = True,
    ) -> None:
        self._config_source = config_source
        self.services = Services(rng=rng, responses=responses, templates=templates)
        self.handlers = HandlerRegistry()
        self._builders: list[Stage] = []
        self._plugin_manager = pluggy.PluginManager(MULTIVOCAL_HOOK_NAMESPACE)
        self._plugin_manager.add_hookspecs(MultivocalHookSpecs)
        self._hook_runtime = HookRuntime(self._plugin_manager)
        self._failed_plugins: dict[str, str] = {}
        if load_builtin:
            self.register_plugin(builtin_handlers.plugin, name=BUILTIN_PLUGIN_NAME)

    @property
    def builders(self) -> list[Stage]:
        return list(self._builders)

    @property
    def failed_plugins(self) -> dict[str, str]:
        return dict(self._failed_plugins)

    def register_plugin(self, plugin: object, *, name: str | None = None) -> None:
        """Register a plugin and apply its handler and builder contributions."""

        self._plugin_manager.register(plugin, name=name)
        self._hook_runtime.call_plugin_sync(plugin, "register_handlers", registry=self.handlers)
        self._hook_runtime.call_plugin_sync(plugin, "register_builders", builders=self._builders)

    def load_plugins(self) -> None:
        """Discover plugins published under the `multivocal` entry-point group."""

        for entry_point in entry_points(group=ENTRY_POINT_GROUP):
            plugin_name = f"entrypoint:{entry_point.name}"
            if self._plugin_manager.has_plugin(plugin_name):
                continue
            try:
                self.register_plugin(entry_point.load(), name=plugin_name)
            except Exception as exc:
                self._failed_plugins[entry_point.name] = str(exc)
                logger.opt(exception=True).warning("plugin.load_failed plugin={}", entry_point.name)

    def add_builder(self, stage: Stage) -> None:
        self._builders.append(stage)

    def add_handler(self, key: str, handler: Handler) -> None:
        self.handlers.register(key, handler)

    def add_intent_handler(self, name: str, handler: Handler) -> None:
        self.handlers.register_intent(name, handler)

    def add_action_handler(self, name: str, handler: Handler) -> None:
        self.handlers.register_action(name, handler)

    def create_env(
        self,
        request: TurnRequest,
        platform: Platform | None = None,
        storage: TurnStorage | None = None,
    ) -> Env:
        return Env(
            request=request,
            platform=platform if platform is not None else InMemoryPlatform.from_request(request),
            storage=storage if storage is not None else TurnStorage(),
            services=self.services,
        )

    async def process(
        self,
        request: TurnRequest,
        platform: Platform | None = None,
        storage: TurnStorage | None = None,
    ) -> Env:
        """Run one inbound request through every stage and send the reply."""

        env = self.create_env(request, platform, storage)
        with bind_turn(env):
            logger.info("turn.start intent={} action={}", request.intent, request.action)
            env = await self._run_stage("build_env", env, self._build_env)
            env = await self._run_stage("select_voice", env, self._select_voice)
            env = await self._run_stage("dispatch", env, self.handlers.dispatch)
            env = await self._run_stage("add_suffix", env, add_suffix)
            env = await self._run_stage("send", env, send)
        return env

    def hook_report(self) -> dict[str, list[str]]:
        """Return hook implementation summary for diagnostics."""

        return self._hook_runtime.hook_report()

    async def _build_env(self, env: Env) -> Env:
        return await build_env(env, self._config_source, list(self._builders))

    async def _select_voice(self, env: Env) -> Env:
        return await select_voice(env, self.services.rng)

    async def _run_stage(self, name: str, env: Env, stage: Callable[[Env], Awaitable[Env | None]]) -> Env:
        try:
            result = await stage(env)
        except Exception as exc:
            logger.opt(exception=True).error(
                "pipeline.stage_failed stage={} intent={} action={}",
                name,
                env.intent or env.request.intent,
                env.action or env.request.action,
            )
            await self._hook_runtime.notify_error(stage=name, error=exc, env=env)
            raise
        return env if result is None else result
