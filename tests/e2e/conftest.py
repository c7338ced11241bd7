import os

import pytest

from overrideqa.config import SuiteConfig
from overrideqa.suite import SuiteRunner


def pytest_collection_modifyitems(config, items):
    if os.getenv("OVERRIDEQA_BASE_URL"):
        return
    skip = pytest.mark.skip(reason="set OVERRIDEQA_BASE_URL to run against a live site")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def suite_config(tmp_path_factory) -> SuiteConfig:
    config = SuiteConfig()
    if not os.getenv("OVERRIDEQA_STORAGE_ROOT"):
        config.storage_root = tmp_path_factory.mktemp("runs")
    return config


@pytest.fixture(scope="session")
def browser_session(suite_config):
    from overrideqa.browser import BrowserSession

    with BrowserSession(suite_config) as session:
        yield session


@pytest.fixture(scope="session")
def suite_runner(browser_session, suite_config) -> SuiteRunner:
    return SuiteRunner(browser_session.clients(), suite_config)


@pytest.fixture(scope="session")
def verifier(suite_runner):
    """One baseline reset shared by every scenario in the session."""

    baseline = suite_runner.reset_baseline()
    return suite_runner.build_verifier(baseline)
