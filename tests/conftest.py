"""Shared fixtures for the eccore test suite."""

import hashlib

import pytest

from eccore import CoreConfig, PrivateKey, set_config


@pytest.fixture(autouse=True)
def default_config():
    """Every test starts from the default policy and leaves it behind."""
    previous = set_config(CoreConfig())
    yield
    set_config(previous)


@pytest.fixture
def secret_bytes():
    return bytes.fromhex("c9afa9d845ba75166b5c215767b1d6934e50c3db36e89b127b8a622b120f6721")


@pytest.fixture
def private_key(secret_bytes):
    return PrivateKey(secret_bytes)


@pytest.fixture
def digest():
    return hashlib.sha256(b"sample").digest()
