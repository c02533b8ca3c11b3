"""Shared fixtures."""

import logging

import pytest

from schema_scaffold.config import ScaffoldConfig
from schema_scaffold.diagnostics import ScaffoldingDiagnostics
from schema_scaffold.postgresql.connection import ServerCapabilities


@pytest.fixture(autouse=True)
def capture_debug(caplog):
    """Capture found-events too, which are logged at DEBUG."""
    caplog.set_level(logging.DEBUG)


@pytest.fixture
def config():
    return ScaffoldConfig()


@pytest.fixture
def diagnostics():
    return ScaffoldingDiagnostics()


@pytest.fixture
def capabilities():
    return ServerCapabilities.from_server_version(160002)


@pytest.fixture
def legacy_capabilities():
    return ServerCapabilities.from_server_version(90624)
