from __future__ import annotations

import pytest

from multivocal.builtin.handlers import plugin as builtin_plugin
from multivocal.contexts import SingleContext
from multivocal.env import Env
from multivocal.errors import HandlerNotFoundError
from multivocal.handlers import DEFAULT_KEY, HandlerRegistry
from multivocal.sdk import InMemoryPlatform, InMemoryStore, TurnStorage
from support import make_env


def _recording_registry(keys: list[str]) -> tuple[HandlerRegistry, list[str]]:
    registry = HandlerRegistry()
    calls: list[str] = []
    for key in keys:

        async def handler(env: Env, key: str = key) -> Env:
            calls.append(key)
            return env

        registry.register(key, handler)
    return registry, calls


def _builtin_registry() -> HandlerRegistry:
    registry = HandlerRegistry()
    builtin_plugin.register_handlers(registry)
    return registry


@pytest.mark.asyncio
async def test_dispatch_prefers_intent_over_action_and_default() -> None:
    registry, calls = _recording_registry(["Intent.greet", "Action.welcome", DEFAULT_KEY])

    env = await registry.dispatch(make_env(intent="greet", action="welcome"))

    assert calls == ["Intent.greet"]
    assert env.handler_key == "Intent.greet"


@pytest.mark.asyncio
async def test_dispatch_falls_back_to_action_then_default() -> None:
    registry, calls = _recording_registry(["Action.welcome", DEFAULT_KEY])

    await registry.dispatch(make_env(intent="greet", action="welcome"))
    await registry.dispatch(make_env(intent="greet", action="other"))

    assert calls == ["Action.welcome", DEFAULT_KEY]


@pytest.mark.asyncio
async def test_dispatch_without_any_handler_is_fatal() -> None:
    registry, calls = _recording_registry(["Intent.unrelated"])

    with pytest.raises(HandlerNotFoundError) as exc_info:
        await registry.dispatch(make_env(intent="greet", action="welcome"))

    assert exc_info.value.keys == ["Intent.greet", "Action.welcome", DEFAULT_KEY]
    assert calls == []


@pytest.mark.asyncio
async def test_dispatch_reraises_handler_failure() -> None:
    registry = HandlerRegistry()

    async def broken(env: Env) -> Env:
        raise ValueError("handler broke")

    registry.register(DEFAULT_KEY, broken)

    with pytest.raises(ValueError, match="handler broke"):
        await registry.dispatch(make_env(intent="greet"))


def test_register_helpers_prefix_keys_and_overwrite() -> None:
    registry = HandlerRegistry()

    async def first(env: Env) -> Env:
        return env

    async def second(env: Env) -> Env:
        return env

    registry.register_intent("greet", first)
    registry.register_action("quit", first)
    registry.register_action("quit", second)

    assert registry.keys() == ["Action.quit", "Intent.greet"]
    assert registry.get("Action.quit") is second


@pytest.mark.asyncio
async def test_default_handler_walks_response_names_in_order() -> None:
    registry = _builtin_registry()

    by_intent = await registry.dispatch(make_env(intent="ask", action="welcome-ish"))
    by_action = await registry.dispatch(make_env(intent="unknown", action="quit-ish"))

    assert by_intent.msg == "What next?"
    assert by_intent.response is not None
    assert by_intent.response.name == "Response/Intent.ask"
    assert by_action.msg == "I heard you."
    assert by_action.msg_template == "I heard you."


@pytest.mark.asyncio
async def test_welcome_handler_counts_visits_then_answers() -> None:
    registry = _builtin_registry()
    user = InMemoryStore()

    first = await registry.dispatch(make_env(action="welcome", storage=TurnStorage(user=user)))
    await registry.dispatch(make_env(action="welcome", storage=TurnStorage(user=user)))

    assert first.msg == "Welcome!"
    assert user.get("NumVisits") == 2


@pytest.mark.asyncio
async def test_quit_handler_closes_after_default_content() -> None:
    registry = _builtin_registry()

    env = await registry.dispatch(make_env(action="quit"))

    assert env.msg == "Goodbye."
    assert env.should_close is True
    assert env.response is not None
    assert isinstance(env.response.context, SingleContext)
    assert env.response.context.descriptor.name == "farewell"


@pytest.mark.asyncio
async def test_no_input_handler_records_reprompt_state() -> None:
    registry = _builtin_registry()
    platform = InMemoryPlatform(reprompt_count=2, final_reprompt=True)

    env = await registry.dispatch(make_env(intent="input.none", platform=platform))

    assert env.handler_key == "Intent.input.none"
    assert env.reprompt_count == 2
    assert env.reprompt_final is True
    assert env.msg == "I heard you."


@pytest.mark.asyncio
async def test_dispatch_keeps_env_when_handler_returns_nothing() -> None:
    registry = HandlerRegistry()

    async def mutate_only(env: Env) -> None:
        env.msg = "Done."

    registry.register(DEFAULT_KEY, mutate_only)
    env = make_env(intent="greet")

    result = await registry.dispatch(env)

    assert result is env
    assert result.msg == "Done."
