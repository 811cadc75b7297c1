from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tests.helpers.compose import build_config

# Importing the ASGI module builds a default app; keep its scratch dir isolated.
_SESSION_ROOT = Path(tempfile.mkdtemp(prefix="reelmaker-tests-"))
os.environ.setdefault("SCRATCH_DIR", str(_SESSION_ROOT / "scratch"))
os.environ.setdefault("MUSIC_ROOT", str(_SESSION_ROOT / "music"))


@pytest.fixture
def app_config(tmp_path):
    return build_config(tmp_path)


@pytest.fixture
def app(app_config):
    from src.reelmaker.main import create_app

    return create_app(app_config)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
