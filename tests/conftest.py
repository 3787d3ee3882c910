from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from dispatch_sim.logging_config import shutdown_logging


@pytest.fixture(autouse=True)
def _detach_package_logging() -> Iterator[None]:
    yield
    shutdown_logging()
    logging.getLogger("dispatch_sim").setLevel(logging.NOTSET)
