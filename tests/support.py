"""Shared builders for multivocal tests."""

from __future__ import annotations

from typing import Any

from multivocal.config import ConfigDocument
from multivocal.env import Env
from multivocal.sdk import InMemoryPlatform, TurnRequest, TurnStorage
from multivocal.services import Services

CONVERSATION: dict[str, Any] = {
    "Voice": [
        {"Name": "Alice", "Voice": {"gender": "female"}, "Prosody": {"rate": "95%"}},
        {"Name": "Bob", "Voice": {"gender": "male", "variant": "2"}},
    ],
    "Response": {
        "Action.welcome": "Welcome!",
        "Action.quit": {"Template": "Goodbye.", "Context": "farewell"},
        "Intent.ask": "What next?",
        "Intent.greet": "Hello {{ parameters.name }}.",
        "Default": "I heard you.",
    },
    "Suffix": {
        "Default": {
            "Template": "What else?",
            "Context": [{"name": "followup", "lifetime": 2}, "listening"],
        }
    },
}


class FixedRandom:
    """Deterministic stand-in for random.Random."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value

    def choice(self, items: list[Any]) -> Any:
        return items[int(self.value * len(items))]


def make_env(
    *,
    intent: str | None = None,
    action: str | None = None,
    config: dict[str, Any] | None = None,
    platform: InMemoryPlatform | None = None,
    storage: TurnStorage | None = None,
    **request_fields: Any,
) -> Env:
    request = TurnRequest(intent=intent, action=action, **request_fields)
    env = Env(
        request=request,
        platform=platform if platform is not None else InMemoryPlatform.from_request(request),
        storage=storage if storage is not None else TurnStorage(),
        services=Services(),
        config=ConfigDocument(CONVERSATION if config is None else config),
    )
    env.intent = f"Intent.{intent}" if intent else None
    env.action = f"Action.{action}" if action else None
    env.parameters = dict(request.parameters)
    env.requested_voice_name = request.voice
    return env
