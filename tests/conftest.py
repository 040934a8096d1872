#!/usr/bin/env python3
"""
Shared pytest fixtures and configuration for devsetup tests.
"""

import io
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Ensure the repo root is importable without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from devsetup.config import SetupConfig
from devsetup.context import SetupCtx
from devsetup.lib.console import Console
from devsetup.logging_utils import reset_logging

FIXED_NOW = datetime(2025, 1, 2, 3, 4, 5)


@pytest.fixture
def home(tmp_path, monkeypatch):
    """A fake $HOME; ZSH_CUSTOM/SHELL are cleared so defaults apply."""
    h = tmp_path / "home"
    h.mkdir()
    monkeypatch.setenv("HOME", str(h))
    monkeypatch.delenv("ZSH_CUSTOM", raising=False)
    monkeypatch.delenv("SHELL", raising=False)
    return h


@pytest.fixture
def cfg(home):
    return SetupConfig(raw={}, home=home)


@pytest.fixture
def out():
    """Captured console output."""
    return io.StringIO()


@pytest.fixture
def make_ctx(cfg, out):
    """Build a SetupCtx with a silent console; keyword args override fields."""

    def _make(**kwargs):
        kwargs.setdefault("cfg", cfg)
        kwargs.setdefault("console", Console(stream=out, color=False))
        kwargs.setdefault("confirm", lambda prompt: False)
        kwargs.setdefault("started_at", FIXED_NOW)
        return SetupCtx(**kwargs)

    return _make


@pytest.fixture
def ctx(make_ctx):
    return make_ctx()


@pytest.fixture
def state():
    return {"execution": {"completed_steps": [], "failed_steps": [], "warnings": [], "errors": [], "backups": []}}


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()
