"""Ordered asynchronous stage execution and the environment builder."""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from multivocal.config import ConfigSource
from multivocal.contexts import ContextDescriptor
from multivocal.env import ACTION_PREFIX, INTENT_PREFIX, Env
from multivocal.types import Stage


def stage_name(stage: Stage) -> str:
    return getattr(stage, "__qualname__", None) or getattr(stage, "__name__", None) or repr(stage)


async def run_stages(env: Env, stages: Iterable[Stage]) -> Env:
    """Fold async stages over the env; the first failure stops the rest."""

    for stage in stages:
        result = await stage(env)
        if result is not None:
            env = result
    return env


async def load_config(env: Env, source: ConfigSource) -> Env:
    env.config = await source.get()
    return env


async def build_parameters(env: Env) -> Env:
    env.parameters = dict(env.request.parameters or {})
    return env


async def build_contexts(env: Env) -> Env:
    contexts: dict[str, ContextDescriptor] = {}
    for context in env.platform.contexts():
        contexts[context.name] = context
    env.contexts_in = contexts
    return env


async def build_intents(env: Env) -> Env:
    env.intent = f"{INTENT_PREFIX}{env.request.intent}" if env.request.intent else None
    env.action = f"{ACTION_PREFIX}{env.request.action}" if env.request.action else None
    env.requested_voice_name = env.request.voice
    return env


async def build_env(env: Env, source: ConfigSource, builders: Iterable[Stage] = ()) -> Env:
    """Populate config, parameters, contexts, and dispatch keys, then run extension builders."""

    env = await load_config(env, source)
    env = await run_stages(env, [build_parameters, build_contexts, build_intents])
    extensions = list(builders)
    if extensions:
        logger.debug("env.builders stages={}", [stage_name(stage) for stage in extensions])
    return await run_stages(env, extensions)
