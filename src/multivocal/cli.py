"""multivocal command line."""

from __future__ import annotations

import asyncio
import json
import random
from pathlib import Path

import typer

from multivocal.config import ConfigSource, StaticConfigSource, YamlConfigSource, get_settings
from multivocal.framework import Multivocal
from multivocal.logging_utils import configure_logging
from multivocal.sdk import InMemoryPlatform, TurnRequest

app = typer.Typer(name="multivocal", help="Voice and text assistant turn pipeline", add_completion=False)


def _load_framework(config: Path | None, *, seed: int | None = None, require_config: bool = False) -> Multivocal:
    settings = get_settings(config)
    configure_logging(profile=settings.log_profile, level=settings.log_level)
    source: ConfigSource
    if settings.config_path is not None:
        source = YamlConfigSource(settings.config_path)
    elif require_config:
        raise typer.BadParameter("pass --config or set MULTIVOCAL_CONFIG_PATH", param_hint="--config")
    else:
        source = StaticConfigSource({})
    rng = random.Random(seed) if seed is not None else None
    framework = Multivocal(source, rng=rng)
    framework.load_plugins()
    return framework


@app.command("run")
def run(
    request_file: Path = typer.Argument(..., help="JSON request body for one turn"),  # noqa: B008
    config: Path | None = typer.Option(None, "--config", "-c", help="YAML conversation config"),  # noqa: B008
    seed: int | None = typer.Option(None, "--seed", help="Seed for voice and response choice"),
) -> None:
    """Run one request through the pipeline and print the reply."""

    framework = _load_framework(config, seed=seed, require_config=True)
    body = json.loads(request_file.read_text(encoding="utf-8"))
    request = TurnRequest.from_webhook(body)
    platform = InMemoryPlatform.from_request(request)

    env = asyncio.run(framework.process(request, platform))
    kind, reply = platform.replies[-1]
    typer.echo(f"handler: {env.handler_key}")
    typer.echo(f"voice: {env.voice.name if env.voice else '-'}")
    typer.echo(f"speech: {reply.speech}")
    typer.echo(f"text: {reply.display_text}")
    for context in platform.contexts_out:
        typer.echo(f"context: {context.name} lifetime={context.lifetime} parameters={json.dumps(context.parameters)}")
    typer.echo(f"close: {'yes' if kind == 'tell' else 'no'}")


@app.command("handlers")
def list_handlers(
    config: Path | None = typer.Option(None, "--config", "-c"),  # noqa: B008
) -> None:
    """Show registered dispatch keys."""

    framework = _load_framework(config)
    for key in framework.handlers.keys():
        typer.echo(key)
    for plugin_name, error in framework.failed_plugins.items():
        typer.echo(f"failed {plugin_name}: {error}")


@app.command("hooks")
def list_hooks(
    config: Path | None = typer.Option(None, "--config", "-c"),  # noqa: B008
) -> None:
    """Show hook implementation mapping."""

    framework = _load_framework(config)
    report = framework.hook_report()
    if not report:
        typer.echo("(no hook implementations)")
        return
    for hook_name, plugins in report.items():
        typer.echo(f"{hook_name}: {', '.join(plugins)}")
