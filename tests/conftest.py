"""Shared fixtures for the release distribution tests."""

from __future__ import annotations

import pytest

from ._helpers import FakeGitHub


@pytest.fixture(name="fake_github")
def fixture_fake_github() -> FakeGitHub:
    """Provide an empty fake GitHub API."""
    return FakeGitHub()
