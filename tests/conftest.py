"""Test configuration — ensure controlfit modules are importable."""
import sys
from pathlib import Path

import pytest
from loguru import logger

# Add project root to path so `from controlfit.xxx import` works
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def log_messages():
    """Collect loguru messages at WARNING and above for the duration of a test."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="WARNING")
    yield messages
    logger.remove(handler_id)
