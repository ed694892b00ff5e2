"""Lazy rendering of the speech-markup and display-text forms."""

from __future__ import annotations

from typing import TYPE_CHECKING

from multivocal.template import SSML_TEMPLATE, TXT_TEMPLATE

if TYPE_CHECKING:
    from multivocal.env import Env


def build_message_content(env: Env, name: str, default_template: str) -> Env:
    """Render `name` once; a value already on the env is left untouched."""

    if getattr(env, name):
        return env

    template_name = f"{name}_template"
    template = getattr(env, template_name) or default_template
    setattr(env, template_name, template)
    setattr(env, name, env.services.templates.render(template, env.template_context()))
    return env


async def assemble(env: Env) -> Env:
    build_message_content(env, "ssml", SSML_TEMPLATE)
    build_message_content(env, "txt", TXT_TEMPLATE)
    return env
