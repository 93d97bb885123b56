# tests/conftest.py
"""Shared fixtures: user keypairs and small vault builders."""

import pytest

from cipherbox.crypto.common import generate_key
from cipherbox.crypto.ecies import generate_user_keypair


@pytest.fixture
def user():
    keypair = generate_user_keypair()
    yield keypair
    keypair.wipe()


@pytest.fixture
def other_user():
    keypair = generate_user_keypair()
    yield keypair
    keypair.wipe()


@pytest.fixture
def container_key():
    key = generate_key()
    yield key
    key.wipe()


@pytest.fixture
def master_secret():
    return bytes(range(32))
