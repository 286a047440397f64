from __future__ import annotations

import pytest

from fakes import FakeControlApi, StubPlaywright


@pytest.fixture
def fake_api() -> FakeControlApi:
    return FakeControlApi()


@pytest.fixture
def stub_playwright() -> StubPlaywright:
    return StubPlaywright()
