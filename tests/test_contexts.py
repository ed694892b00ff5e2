from __future__ import annotations

import asyncio
from typing import Any

import pytest

from multivocal.contexts import (
    DEFAULT_LIFETIME,
    ContextDescriptor,
    MultipleContexts,
    SingleContext,
    context_spec_from_raw,
    propagate,
)
from multivocal.response import ResponseRecord
from multivocal.sdk import InMemoryPlatform
from support import make_env


def test_bare_name_expands_to_default_descriptor() -> None:
    assert ContextDescriptor.from_raw("Foo") == ContextDescriptor(name="Foo", lifetime=5, parameters={})
    assert DEFAULT_LIFETIME == 5


def test_mapping_descriptor_defaults_only_parameters() -> None:
    descriptor = ContextDescriptor.from_raw({"name": "Foo", "lifetime": 2})

    assert descriptor == ContextDescriptor(name="Foo", lifetime=2, parameters={})
    assert ContextDescriptor.from_raw({"name": "Bar"}).lifetime is None


def test_descriptor_requires_a_name() -> None:
    with pytest.raises(ValueError):
        ContextDescriptor.from_raw({"lifetime": 2})


def test_context_spec_tags_single_and_multiple_values() -> None:
    assert context_spec_from_raw(None) is None
    assert context_spec_from_raw("Foo") == SingleContext(ContextDescriptor(name="Foo"))
    assert context_spec_from_raw(["Foo", {"name": "Bar", "lifetime": 1, "parameters": {"a": 1}}]) == MultipleContexts(
        (ContextDescriptor(name="Foo"), ContextDescriptor(name="Bar", lifetime=1, parameters={"a": 1}))
    )


@pytest.mark.asyncio
async def test_propagate_pushes_both_sources() -> None:
    platform = InMemoryPlatform()
    env = make_env(intent="greet", platform=platform)
    env.response = ResponseRecord(context=context_spec_from_raw("Foo"))
    env.response_suffix = ResponseRecord(context=context_spec_from_raw([{"name": "a", "lifetime": 1}, "b"]))

    await propagate(env)

    assert sorted(platform.contexts_out, key=lambda item: item.name) == [
        ContextDescriptor(name="Foo", lifetime=5, parameters={}),
        ContextDescriptor(name="a", lifetime=1, parameters={}),
        ContextDescriptor(name="b", lifetime=5, parameters={}),
    ]


@pytest.mark.asyncio
async def test_propagate_without_contexts_writes_nothing() -> None:
    platform = InMemoryPlatform()
    env = make_env(intent="greet", platform=platform)
    env.response = ResponseRecord(template="Hi.")

    await propagate(env)

    assert platform.contexts_out == []


class _FailingPlatform(InMemoryPlatform):
    async def set_context(self, name: str, lifetime: int | None, parameters: dict[str, Any]) -> None:
        raise ConnectionError(f"cannot set {name}")


@pytest.mark.asyncio
async def test_propagate_failure_is_raised() -> None:
    env = make_env(intent="greet", platform=_FailingPlatform())
    env.response = ResponseRecord(context=context_spec_from_raw("Foo"))

    with pytest.raises(ConnectionError, match="cannot set Foo"):
        await propagate(env)


class _PartlyFailingPlatform(InMemoryPlatform):
    async def set_context(self, name: str, lifetime: int | None, parameters: dict[str, Any]) -> None:
        if name == "broken":
            raise ConnectionError("cannot set broken")
        for _ in range(3):
            await asyncio.sleep(0)
        await super().set_context(name, lifetime, parameters)


@pytest.mark.asyncio
async def test_propagate_lets_sibling_writes_finish_before_raising() -> None:
    platform = _PartlyFailingPlatform()
    env = make_env(intent="greet", platform=platform)
    env.response = ResponseRecord(context=context_spec_from_raw("broken"))
    env.response_suffix = ResponseRecord(context=context_spec_from_raw(["slow", "slower"]))

    with pytest.raises(ConnectionError, match="cannot set broken"):
        await propagate(env)

    assert sorted(item.name for item in platform.contexts_out) == ["slow", "slower"]
