import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Settings are read from the environment on every call, so defaults set
    here apply to everything the tests exercise.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ.setdefault("PAYMENT_WEBHOOK_SECRET", "test-webhook-secret")
    os.environ.setdefault("FILE_URL_SIGNING_KEY", "test-signing-key")
    os.environ.setdefault("PUBLIC_BASE_URL", "https://designs.test")
    os.environ["PAYMENT_GATEWAY"] = "fake"
    os.environ["EMAIL_BACKEND"] = "fake"
    os.environ.pop("DISCORD_WEBHOOK_URL", None)


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
