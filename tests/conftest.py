from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
import structlog

from podkit.logs import configure_default_logging


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Handlers installed by the CLI hold the captured stderr of the test that created them."""
    yield
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    structlog.reset_defaults()
    configure_default_logging()
