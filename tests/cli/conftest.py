"""Fixtures shared by CLI tests."""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def no_global_config(tmp_path_factory: pytest.TempPathFactory) -> Iterator[None]:
    """Keep the user's global config out of CLI runs."""
    missing = tmp_path_factory.mktemp("home") / "config.yaml"
    with patch("asmgraph.config.loader.GLOBAL_CONFIG_PATH", missing):
        yield
