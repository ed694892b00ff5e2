"""Template rendering with a speech-markup helper."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol
from xml.sax.saxutils import quoteattr

from jinja2 import Environment, StrictUndefined, Undefined

from multivocal.voice import Voice

SSML_TEMPLATE = "{% call speak(voice) %}{{ msg }}{% if suffix %} {{ suffix }}{% endif %}{% endcall %}"
TXT_TEMPLATE = "{{ msg }}{% if suffix %} {{ suffix }}{% endif %}"


class TemplateEngine(Protocol):
    def render(self, template: str, context: Mapping[str, Any]) -> str: ...


def _open_tag(tag: str, params: Mapping[str, Any] | None) -> str:
    if not params:
        return ""
    attributes = "".join(f" {key}={quoteattr(str(value))}" for key, value in params.items())
    return f"<{tag}{attributes}>"


def _close_tag(tag: str, params: Mapping[str, Any] | None) -> str:
    if not params:
        return ""
    return f"</{tag}>"


def speak(voice: Voice | Mapping[str, Any] | None, caller: Callable[[], str]) -> str:
    """Wrap the caller body in `<speak>` plus optional voice and prosody tags."""

    persona = Voice.from_config(voice) if voice is not None else None
    voice_params = persona.voice if persona is not None else None
    prosody_params = persona.prosody if persona is not None else None
    return "".join(
        [
            "<speak>",
            _open_tag("voice", voice_params),
            _open_tag("prosody", prosody_params),
            caller(),
            _close_tag("prosody", prosody_params),
            _close_tag("voice", voice_params),
            "</speak>",
        ]
    )


def _blank_none(value: Any) -> Any:
    return "" if value is None else value


class JinjaTemplateEngine:
    """Render inline template strings against the turn's env."""

    def __init__(self, *, strict: bool = False) -> None:
        self.env = Environment(
            autoescape=False,
            undefined=StrictUndefined if strict else Undefined,
            keep_trailing_newline=False,
            finalize=_blank_none,
        )
        self.env.globals["speak"] = speak

    def render(self, template: str, context: Mapping[str, Any]) -> str:
        """Render a template string with context variables.

        Raises:
            jinja2.TemplateSyntaxError: If the template is malformed
        """
        compiled = self.env.from_string(template)
        return compiled.render(**context)
