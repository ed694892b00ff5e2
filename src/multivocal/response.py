"""Content lookup over fallback name lists and the env bridge that renders it."""

from __future__ import annotations

import random
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from loguru import logger

from multivocal.config import ConfigDocument
from multivocal.contexts import ContextSpec, context_spec_from_raw

if TYPE_CHECKING:
    from multivocal.env import Env

RESERVED_KEYS = frozenset({"Template", "Context", "ShouldClose"})
SUFFIX_NAMES = ("Suffix/Default",)

# Env attribute that keeps the resolved record for each content field.
RECORD_FIELDS = {"msg": "response", "suffix": "response_suffix"}


@dataclass(frozen=True)
class ResponseRecord:
    """One configured content entry chosen for this turn."""

    name: str | None = None
    template: str | None = None
    context: ContextSpec | None = None
    should_close: bool = False
    fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_entry(cls, name: str | None, entry: Any) -> ResponseRecord:
        if isinstance(entry, ResponseRecord):
            return entry
        if isinstance(entry, str):
            return cls(name=name, template=entry)
        if not isinstance(entry, Mapping):
            raise ValueError(f"{name}: response entry must be a string or mapping, got {type(entry).__name__}")
        template = entry.get("Template")
        return cls(
            name=name,
            template=None if template is None else str(template),
            context=context_spec_from_raw(entry.get("Context")),
            should_close=bool(entry.get("ShouldClose", False)),
            fields={key: value for key, value in entry.items() if key not in RESERVED_KEYS},
        )


class ResponseService(Protocol):
    """Return the first configured record for an ordered candidate-name list."""

    async def resolve(
        self,
        config: ConfigDocument,
        names: Sequence[str],
        default: ResponseRecord,
    ) -> ResponseRecord: ...


class ConfigResponseService:
    """Look candidates up as `Section/Key` paths in the config document."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    async def resolve(
        self,
        config: ConfigDocument,
        names: Sequence[str],
        default: ResponseRecord,
    ) -> ResponseRecord:
        for name in names:
            entry = config.lookup(name)
            if isinstance(entry, list):
                if not entry:
                    continue
                entry = self._rng.choice(entry)
            if entry is None:
                continue
            return ResponseRecord.from_entry(name, entry)
        logger.debug("response.default names={}", list(names))
        return default


async def resolve_content(
    env: Env,
    names: Sequence[str],
    target: str = "msg",
    default: ResponseRecord | None = None,
) -> Env:
    """Resolve a record for `target` and render it into `<target>` and `<target>_template`."""

    record = await env.services.responses.resolve(env.config, names, default or ResponseRecord())
    record_field = RECORD_FIELDS.get(target)
    if record_field is not None:
        setattr(env, record_field, record)
    if record.should_close:
        env.should_close = True
    for name, value in record.fields.items():
        _assign(env, name, value)

    template = record.template or ""
    _assign(env, f"{target}_template", template)
    _assign(env, target, env.services.templates.render(template, env.template_context()))
    logger.debug("response.resolved target={} name={}", target, record.name)
    return env


async def add_suffix(env: Env) -> Env:
    """Append a continuation prompt unless the reply asks a question or closes."""

    ends_with_question = env.msg is not None and env.msg.rstrip().endswith("?")
    if ends_with_question or env.should_close:
        return env
    return await resolve_content(env, SUFFIX_NAMES, "suffix")


def _assign(env: Env, name: str, value: Any) -> None:
    if hasattr(env, name):
        setattr(env, name, value)
    else:
        env.extra[name] = value
