"""Framework-neutral data aliases."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from multivocal.env import Env

Parameters: TypeAlias = dict[str, Any]
Stage: TypeAlias = Callable[["Env"], Awaitable["Env | None"]]
Handler: TypeAlias = Callable[["Env"], Awaitable["Env | None"]]


@dataclass(frozen=True)
class Reply:
    """Payload delivered to the platform at the end of one turn."""

    speech: str
    display_text: str

    def to_payload(self) -> dict[str, str]:
        return {"speech": self.speech, "displayText": self.display_text}
