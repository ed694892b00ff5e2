"""Single-shot delivery of the assembled reply."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from multivocal.contexts import propagate
from multivocal.message import assemble
from multivocal.types import Reply

if TYPE_CHECKING:
    from multivocal.env import Env


async def send_message(env: Env) -> Env:
    reply = Reply(speech=env.ssml or "", display_text=env.txt or "")
    if env.should_close:
        await env.platform.tell(reply)
    else:
        await env.platform.ask(reply)
    env.sent = True
    logger.info("turn.sent close={}", env.should_close)
    return env


async def send(env: Env) -> Env:
    """Assemble, propagate contexts, and deliver, at most once per env."""

    if env.sent:
        return env
    env = await assemble(env)
    env = await propagate(env)
    return await send_message(env)
