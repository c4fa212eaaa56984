from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tests._fixtures.repo_builder import RepoBuilder
from typedupes.logging import ROOT_LOGGER, shutdown_logging


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable source tree builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_typedupes_logger():
    """Close handlers bound to captured streams or temp files once a test finishes."""
    yield
    shutdown_logging()
    logger = logging.getLogger(ROOT_LOGGER)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
