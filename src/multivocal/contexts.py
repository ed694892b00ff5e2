"""Context descriptors and propagation of outgoing contexts to the platform."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeAlias, TypeVar

from loguru import logger

if TYPE_CHECKING:
    from multivocal.env import Env
    from multivocal.sdk import Platform
    from multivocal.response import ResponseRecord

DEFAULT_LIFETIME = 5

T = TypeVar("T")


@dataclass(frozen=True)
class ContextDescriptor:
    """One named, time-limited parameter bundle."""

    name: str
    lifetime: int | None = DEFAULT_LIFETIME
    parameters: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: str | Mapping[str, Any] | ContextDescriptor) -> ContextDescriptor:
        """A bare name gets the default lifetime; a mapping only gets empty parameters."""

        if isinstance(raw, ContextDescriptor):
            return raw
        if isinstance(raw, str):
            return cls(name=raw, lifetime=DEFAULT_LIFETIME, parameters={})
        if not isinstance(raw, Mapping) or not raw.get("name"):
            raise ValueError(f"context descriptor needs a name: {raw!r}")
        parameters = raw.get("parameters") or {}
        lifetime = raw.get("lifetime", raw.get("lifespan"))
        return cls(name=str(raw["name"]), lifetime=lifetime, parameters=dict(parameters))


@dataclass(frozen=True)
class SingleContext:
    descriptor: ContextDescriptor


@dataclass(frozen=True)
class MultipleContexts:
    descriptors: tuple[ContextDescriptor, ...]


ContextSpec: TypeAlias = SingleContext | MultipleContexts


def context_spec_from_raw(raw: Any) -> ContextSpec | None:
    """Turn a config `Context` value into a `ContextSpec`."""

    if raw is None:
        return None
    if isinstance(raw, (str, Mapping, ContextDescriptor)):
        return SingleContext(ContextDescriptor.from_raw(raw))
    if isinstance(raw, Sequence):
        return MultipleContexts(tuple(ContextDescriptor.from_raw(item) for item in raw))
    raise ValueError(f"unsupported context value: {raw!r}")


async def send_context(platform: Platform, descriptor: ContextDescriptor) -> ContextDescriptor:
    await platform.set_context(descriptor.name, descriptor.lifetime, dict(descriptor.parameters))
    return descriptor


async def gather_all(*tasks: Awaitable[T]) -> list[T]:
    """Await every task to completion, then raise the first failure if any."""

    outcomes = await asyncio.gather(*tasks, return_exceptions=True)
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    return list(outcomes)


async def send_context_spec(platform: Platform, record: ResponseRecord | None) -> list[ContextDescriptor]:
    if record is None:
        return []
    match record.context:
        case None:
            return []
        case SingleContext(descriptor=descriptor):
            return [await send_context(platform, descriptor)]
        case MultipleContexts(descriptors=descriptors):
            return await gather_all(*(send_context(platform, item) for item in descriptors))
    return []


async def propagate(env: Env) -> Env:
    """Push contexts from the response and suffix records; both must finish."""

    try:
        sent = await gather_all(
            send_context_spec(env.platform, env.response),
            send_context_spec(env.platform, env.response_suffix),
        )
    except Exception:
        logger.opt(exception=True).error("contexts.propagate_failed")
        raise
    names = [descriptor.name for batch in sent for descriptor in batch]
    if names:
        logger.debug("contexts.sent names={}", names)
    return env
