#!/usr/bin/env python3
"""
Unit tests for config.py module.
"""

import pytest

from devsetup.config import DEFAULT_ZSH_ALIASES, SetupConfig, load_setup_config


class TestDefaults:
    """Tests for built-in defaults."""

    def test_paths_anchor_on_home(self, cfg, home):
        assert cfg.nvim_config_dir == home / ".config" / "nvim"
        assert cfg.ohmyzsh_dir == home / ".oh-my-zsh"
        assert cfg.zsh_custom_dir == home / ".oh-my-zsh" / "custom"
        assert cfg.zshrc_path == home / ".zshrc"

    def test_nvim_tools(self, cfg):
        pairs = [(t.package, t.command) for t in cfg.nvim_tools]
        assert ("ripgrep", "rg") in pairs
        assert ("fd-find", "fd") in pairs
        assert len(pairs) == 7

    def test_zsh_plugins_and_aliases(self, cfg):
        assert cfg.zsh_enabled_plugins == ["git", "zsh-autosuggestions", "zsh-syntax-highlighting"]
        assert cfg.zsh_aliases == DEFAULT_ZSH_ALIASES
        assert cfg.zsh_theme == "powerlevel10k/powerlevel10k"

    def test_zsh_custom_env(self, home, monkeypatch):
        monkeypatch.setenv("ZSH_CUSTOM", str(home / "zc"))
        assert SetupConfig(home=home).zsh_custom_dir == home / "zc"


class TestOverrides:
    """Tests for YAML overrides."""

    def test_yaml_overrides(self, tmp_path, home):
        p = tmp_path / "c.yaml"
        p.write_text(
            "nvim:\n"
            "  config_dir: ~/nv\n"
            "  tools:\n"
            "    - {package: jq, command: jq}\n"
            "zsh:\n"
            "  theme: agnoster\n"
            "  aliases: {k: kubectl}\n"
        )
        cfg = load_setup_config(str(p), home=home)
        assert cfg.nvim_config_dir == home / "nv"
        assert [t.package for t in cfg.nvim_tools] == ["jq"]
        assert cfg.zsh_theme == "agnoster"
        assert cfg.zsh_aliases == {"k": "kubectl"}

    def test_default_path_is_optional(self, home):
        cfg = load_setup_config(None, home=home)
        assert cfg.raw == {}

    def test_default_path_is_read(self, home):
        p = home / ".config" / "devsetup" / "config.yaml"
        p.parent.mkdir(parents=True)
        p.write_text("zsh:\n  theme: agnoster\n")
        assert load_setup_config(None, home=home).zsh_theme == "agnoster"

    def test_explicit_missing_path_raises(self, tmp_path, home):
        with pytest.raises(FileNotFoundError):
            load_setup_config(str(tmp_path / "missing.yaml"), home=home)

    def test_non_mapping_rejected(self, tmp_path, home):
        p = tmp_path / "c.yaml"
        p.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            load_setup_config(str(p), home=home)

    def test_bad_section_rejected(self, home):
        with pytest.raises(ValueError):
            SetupConfig(raw={"zsh": ["x"]}, home=home).zsh_theme
