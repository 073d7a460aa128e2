"""
Test Configuration

This module provides:
- Test log directory setup (TEST_LOG_DIR) before application modules import
- Container reset between tests so provider overrides never leak

Architecture:
- Unit tests use in-memory fakes from test/service/ticket_validation/fakes.py
- HTTP tests drive the FastAPI app through TestClient with the gateway overridden
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# loguru_io_config reads TEST_LOG_DIR at import time
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    """Set test environment variables before any module imports."""
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    # Keep the upstream API unreachable unless a test overrides the gateway
    os.environ.setdefault('API_BASE_URL', 'http://ticketing.test')
    os.environ.setdefault('DEPLOY_ENV', 'test')


_early_setup_test_environment()

import pytest  # noqa: E402

from src.platform.config.di import container  # noqa: E402


@pytest.fixture(autouse=True)
def reset_container():
    yield
    container.reset_override()
    container.reset_singletons()
