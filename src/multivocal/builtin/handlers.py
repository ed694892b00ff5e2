"""Builtin handlers for the default response and common platform actions."""

from __future__ import annotations

from multivocal.env import Env
from multivocal.handlers import DEFAULT_KEY, HandlerRegistry
from multivocal.hookspecs import hookimpl
from multivocal.response import resolve_content

NUM_VISITS_KEY = "user.NumVisits"


async def handle_default(env: Env) -> Env:
    names = [f"Response/{key}" for key in (env.intent, env.action) if key]
    names.append("Response/Default")
    return await resolve_content(env, names, "msg")


async def handle_action_welcome(env: Env) -> Env:
    visits = env.storage.read(NUM_VISITS_KEY)
    env.storage.write(NUM_VISITS_KEY, visits + 1 if visits else 1)
    return await handle_default(env)


async def handle_action_quit(env: Env) -> Env:
    env = await handle_default(env)
    env.should_close = True
    return env


async def handle_intent_input_none(env: Env) -> Env:
    env.reprompt_count = env.platform.reprompt_count()
    env.reprompt_final = env.platform.is_final_reprompt()
    return await handle_default(env)


class BuiltinHandlers:
    @hookimpl
    def register_handlers(self, registry: HandlerRegistry) -> None:
        registry.register(DEFAULT_KEY, handle_default)
        registry.register_action("welcome", handle_action_welcome)
        registry.register_action("quit", handle_action_quit)
        registry.register_intent("input.none", handle_intent_input_none)


plugin = BuiltinHandlers()
