"""Shared fixtures for kubestate tests."""

from __future__ import annotations

import os
from collections.abc import Iterator
from types import SimpleNamespace

import pytest

from factories import make_pod


@pytest.fixture(autouse=True, scope="session")
def _clean_env() -> Iterator[None]:
    """Keep KUBESTATE_* variables from the developer's shell out of tests."""
    saved = {key: os.environ.pop(key) for key in list(os.environ) if key.startswith("KUBESTATE_")}
    yield
    os.environ.update(saved)


@pytest.fixture()
def pod() -> SimpleNamespace:
    return make_pod()
