from __future__ import annotations

from typing import Any

import pytest

from support import CONVERSATION


@pytest.fixture
def conversation() -> dict[str, Any]:
    return CONVERSATION
