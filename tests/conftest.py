"""Pytest configuration and shared fixtures."""

import pytest


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's talegraph settings out of test runs."""
    for var in (
        "TALEGRAPH_EXPORT_FORMAT",
        "TALEGRAPH_SAVES_DIR",
        "TALEGRAPH_LIBRARY_DIR",
        "TALEGRAPH_CONFIG",
    ):
        monkeypatch.delenv(var, raising=False)
