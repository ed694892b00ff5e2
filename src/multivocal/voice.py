"""Speech persona model and per-turn persona selection."""

from __future__ import annotations

import math
import random
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from multivocal.env import Env

SESSION_VOICE_KEY = "session.Voice"


class Voice(BaseModel):
    """Named bundle of speech-synthesis parameters."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(alias="Name")
    voice: dict[str, Any] | None = Field(default=None, alias="Voice")
    prosody: dict[str, Any] | None = Field(default=None, alias="Prosody")

    @classmethod
    def from_config(cls, raw: Mapping[str, Any] | Voice) -> Voice:
        if isinstance(raw, Voice):
            return raw
        return cls.model_validate(dict(raw))

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


async def select_voice(env: Env, rng: random.Random | None = None) -> Env:
    """Pick the persona for this turn and pin it in session storage."""

    voices = env.config.voices
    chosen: Voice | None = None
    source = "random"

    requested = env.requested_voice_name
    if requested:
        for candidate in voices:
            if candidate.name == requested:
                chosen = candidate
                source = "requested"
        if chosen is None:
            logger.warning("voice.requested_missing name={}", requested)

    if chosen is None:
        pinned = env.storage.read(SESSION_VOICE_KEY)
        if pinned:
            chosen = Voice.from_config(pinned)
            source = "session"

    if chosen is None and voices:
        generator = rng or random
        index = math.floor(generator.random() * len(voices))
        chosen = voices[index]

    env.voice = chosen
    if chosen is not None:
        env.storage.write(SESSION_VOICE_KEY, chosen.to_storage())
        logger.debug("voice.selected name={} source={}", chosen.name, source)
    return env
