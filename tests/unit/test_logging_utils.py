#!/usr/bin/env python3
"""
Unit tests for logging_utils.py module.
"""

import logging

from devsetup.logging_utils import configure_logging, default_log_path


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_writes_to_requested_file(self, tmp_path):
        path = tmp_path / "logs" / "run.log"
        actual = configure_logging(str(path))
        logging.getLogger("devsetup.test").info("hello from test")
        for h in logging.getLogger().handlers:
            h.flush()
        assert actual == str(path)
        assert "hello from test" in path.read_text()

    def test_second_call_is_noop(self, tmp_path):
        first = configure_logging(str(tmp_path / "a.log"))
        second = configure_logging(str(tmp_path / "b.log"))
        assert first == second
        assert not (tmp_path / "b.log").exists()

    def test_falls_back_to_cwd(self, tmp_path, monkeypatch):
        blocker = tmp_path / "file"
        blocker.write_text("")
        monkeypatch.chdir(tmp_path)
        actual = configure_logging(str(blocker / "sub" / "x.log"))
        assert actual == str(tmp_path / "devsetup.log")


def test_default_log_path(tmp_path):
    p = default_log_path("zsh", home=tmp_path)
    assert p.startswith(str(tmp_path / ".local" / "state" / "devsetup" / "zsh_setup_"))
    assert p.endswith(".log")
