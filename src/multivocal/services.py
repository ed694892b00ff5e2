"""Collaborators the pipeline stages reach through the env."""

from __future__ import annotations

import random

from multivocal.response import ConfigResponseService, ResponseService
from multivocal.template import JinjaTemplateEngine, TemplateEngine


class Services:
    """Random source, content lookup, and template engine shared by one framework."""

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        responses: ResponseService | None = None,
        templates: TemplateEngine | None = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.responses = responses or ConfigResponseService(self.rng)
        self.templates = templates or JinjaTemplateEngine()
