"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os

import httpx
import pytest

from keysentry.checks.breach import BreachChecker
from keysentry.checks.registry import CheckRegistry
from keysentry.config import CheckConfig
from keysentry.core.secure_buffer import SecretBuffer

# SHA-1("password") = 5BAA61E4C9B93F3F0682250B6CF8331B7EE68FD8
PASSWORD_SUFFIX = "1E4C9B93F3F0682250B6CF8331B7EE68FD8"


class RecordingTransport:
    """httpx MockTransport wrapper that records every outgoing request."""

    def __init__(self, responses):
        self.requests: list[httpx.Request] = []
        self._responses = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def range_body():
    """Range response containing the suffix of SHA-1("password")."""
    return (
        "0018A45C4D1DEF81644B54AB7F969B88D65:1\r\n"
        "00D4F6E8FA6EECAD2A3AA415EEC418D38EC:2\r\n"
        f"{PASSWORD_SUFFIX}:9545824\r\n"
        "011053FD0102E94D6AE2F8B83D76FAF94F6:1\r\n"
        "012A7CA357541F0AC487871FEEC1891C49C:0\r\n"
    )


@pytest.fixture
def clean_range_body():
    """Range response without the target suffix."""
    return (
        "0018A45C4D1DEF81644B54AB7F969B88D65:1\r\n"
        "00D4F6E8FA6EECAD2A3AA415EEC418D38EC:2\r\n"
        "011053FD0102E94D6AE2F8B83D76FAF94F6:1\r\n"
    )


@pytest.fixture
def make_checker():
    """Build a BreachChecker backed by a recording mock transport.

    Returns (checker, transport, sleeps).
    """

    def _make(*responses, **kwargs):
        transport = RecordingTransport(responses)
        client = httpx.Client(transport=httpx.MockTransport(transport))
        sleeps: list[float] = []
        checker = BreachChecker(client=client, sleep=sleeps.append, **kwargs)
        return checker, transport, sleeps

    return _make


@pytest.fixture
def secret():
    """A SecretBuffer holding "password", disposed after the test."""
    buf = SecretBuffer.from_bytes(b"password")
    yield buf
    buf.dispose()


@pytest.fixture
def offline_config():
    return CheckConfig(offline=True)


@pytest.fixture
def empty_registry():
    return CheckRegistry()


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Run in an empty directory with no KEYSENTRY_* variables set."""
    for key in list(os.environ):
        if key.startswith("KEYSENTRY_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    return tmp_path
