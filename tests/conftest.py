"""
Pytest configuration for ArangoDB SDK tests.

Unit tests run against scripted transports (see ``tests/fakes.py``) and need
no server. Tests marked ``integration`` talk to a real ArangoDB and are
skipped when none answers on ``ARANGODB_HOST``.

Shared connection constants are defined here so every test file can import them
instead of hardcoding URLs and credentials.
"""

import os
import urllib.error
import urllib.request
from collections.abc import Generator

import pytest

# ---------------------------------------------------------------------------
# Shared connection constants (import these in test files)
# ---------------------------------------------------------------------------
ARANGODB_URL = os.getenv("ARANGODB_HOST", "http://localhost:8529")
ARANGODB_USER = os.getenv("ARANGO_USER", "root")
ARANGODB_PASS = os.getenv("ARANGO_PASSWORD", "")
ARANGODB_DATABASE = os.getenv("ARANGO_DATABASE", "_system")


def is_arangodb_healthy(url: str = ARANGODB_URL) -> bool:
    """Check if ArangoDB answers on its version endpoint (any HTTP status counts)."""
    try:
        req = urllib.request.Request(f"{url.rstrip('/')}/_api/version", method="GET")
        with urllib.request.urlopen(req, timeout=2) as response:
            return response.status == 200
    except urllib.error.HTTPError:
        # 401 without credentials still means the server is up
        return True
    except (urllib.error.URLError, TimeoutError, OSError):
        return False


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests when no ArangoDB server is reachable."""
    integration = [item for item in items if "integration" in item.keywords]
    if not integration or is_arangodb_healthy():
        return
    skip = pytest.mark.skip(reason=f"ArangoDB not reachable at {ARANGODB_URL}")
    for item in integration:
        item.add_marker(skip)


@pytest.fixture(scope="session")
def arangodb_available() -> Generator[bool, None, None]:
    """Session-scoped fixture that indicates if ArangoDB is available."""
    yield is_arangodb_healthy()
