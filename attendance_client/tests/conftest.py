import sys

import pytest
import structlog


@pytest.fixture(autouse=True)
def _structlog_to_stderr():
    """Send structlog output to stderr so CLI stdout stays machine-readable, as in production."""
    structlog.configure(logger_factory=structlog.PrintLoggerFactory(sys.stderr))
    yield
    structlog.reset_defaults()
