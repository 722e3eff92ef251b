from __future__ import annotations

import pathlib
from typing import Any

import pytest

import sqlnames


def pytest_report_header(config: Any) -> list[str]:
    return [f"sqlnames: {sqlnames.__version__}"]


@pytest.fixture(scope="session")
def datadir() -> pathlib.Path:
    return pathlib.Path(__file__).parent / "data"
