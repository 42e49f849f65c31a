import os

import pytest

# Config and logging are initialized at import time, so set the environment at top level.
# A missing logging YAML makes setup fall back to basicConfig, which keeps caplog usable.
os.environ["LOG_CONFIG_PATH"] = "/tmp/tmdb-proxy-missing-logging.yml"
os.environ.pop("VICTORIALOGS_URL", None)

from fastapi.testclient import TestClient  # noqa: E402

from tmdb_proxy.config import ProxyConfig  # noqa: E402
from tmdb_proxy.main import create_app  # noqa: E402


@pytest.fixture
def proxy_config() -> ProxyConfig:
    """Config with zero backoff so retry tests don't sleep."""
    return ProxyConfig(
        _env_file=None,
        IMAGE_RETRY_MAX_ATTEMPTS=3,
        IMAGE_RETRY_BASE_DELAY=0.0,
        IMAGE_RETRY_MAX_DELAY=0.0,
        IMAGE_ATTEMPT_TIMEOUT=2.0,
        IMAGE_REQUEST_DEADLINE=10.0,
    )


@pytest.fixture
def client(proxy_config):
    with TestClient(create_app(proxy_config)) as test_client:
        yield test_client
