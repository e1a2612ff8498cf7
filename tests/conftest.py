"""Configuration file for pytest containing shared fixtures.

- log_messages: captures Loguru messages emitted during a test
"""

from collections.abc import Iterator

import pytest
from loguru import logger


@pytest.fixture()
def log_messages() -> Iterator[list[str]]:
    """Collect formatted Loguru messages (DEBUG and above) for assertions."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]), level="DEBUG"
    )
    yield messages
    logger.remove(handler_id)
