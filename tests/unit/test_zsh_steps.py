#!/usr/bin/env python3
"""
Unit tests for steps/zsh_steps.py module.
"""

import pytest

from devsetup.lib.command import CmdResult, CommandError
from devsetup.lib.zshrc import ALIAS_MARKER
from devsetup.pipeline import StepFailed
from devsetup.steps import zsh_steps
from devsetup.steps.zsh_steps import (
    ConfigureZshrcStep,
    InstallOhMyZshStep,
    InstallPluginsStep,
    InstallPowerlevel10kStep,
    InstallZshStep,
    SetDefaultShellStep,
)


def have(*names):
    present = set(names)
    return lambda name: name in present


def result(code=0, stdout=""):
    return CmdResult(argv=["x"], returncode=code, stdout=stdout, stderr="")


@pytest.fixture
def apt(mocker):
    return {
        "update": mocker.patch.object(zsh_steps, "apt_update"),
        "install": mocker.patch.object(zsh_steps, "apt_install"),
    }


class TestInstallZshStep:
    """Tests for InstallZshStep."""

    def test_already_installed(self, ctx, state, mocker, apt, out):
        mocker.patch.object(zsh_steps, "command_exists", have("zsh"))
        mocker.patch.object(zsh_steps, "first_line", return_value="zsh 5.9")
        InstallZshStep().run(ctx, state)
        apt["install"].assert_not_called()
        assert "zsh 5.9" in out.getvalue()

    def test_installs_and_verifies(self, ctx, state, mocker, apt):
        present = set()
        mocker.patch.object(zsh_steps, "command_exists", lambda n: n in present)
        apt["install"].side_effect = lambda pkgs, dry_run=False: present.update(pkgs)
        InstallZshStep().run(ctx, state)
        apt["update"].assert_called_once()
        assert "zsh" in present

    def test_verification_failure(self, ctx, state, mocker, apt):
        mocker.patch.object(zsh_steps, "command_exists", have())
        with pytest.raises(StepFailed, match="verification failed"):
            InstallZshStep().run(ctx, state)

    def test_apt_update_failure(self, ctx, state, mocker, apt):
        mocker.patch.object(zsh_steps, "command_exists", have())
        apt["update"].side_effect = CommandError(["apt-get", "update"], 100)
        with pytest.raises(StepFailed, match="Failed to update package lists"):
            InstallZshStep().run(ctx, state)

    def test_is_fatal(self):
        assert InstallZshStep.fatal is True


class TestInstallOhMyZshStep:
    """Tests for InstallOhMyZshStep."""

    def test_already_installed(self, ctx, cfg, state, mocker):
        cfg.ohmyzsh_dir.mkdir()
        run = mocker.patch.object(zsh_steps, "run_cmd")
        InstallOhMyZshStep().run(ctx, state)
        run.assert_not_called()

    def test_runs_unattended_installer(self, ctx, cfg, state, mocker, apt):
        mocker.patch.object(zsh_steps, "command_exists", have("curl"))

        def fake_run(argv, **kwargs):
            if argv[0] == "sh":
                cfg.ohmyzsh_dir.mkdir()
                return result()
            return result(stdout="#!/bin/sh\necho install\n")

        run = mocker.patch.object(zsh_steps, "run_cmd", side_effect=fake_run)

        InstallOhMyZshStep().run(ctx, state)

        sh_call = run.call_args_list[1]
        assert sh_call.args[0] == ["sh", "-s", "--", "--unattended"]
        assert sh_call.kwargs["input_text"].startswith("#!/bin/sh")
        assert sh_call.kwargs["env"]["ZSH"] == str(cfg.ohmyzsh_dir)
        apt["install"].assert_not_called()

    def test_installs_curl_first(self, ctx, cfg, state, mocker, apt):
        mocker.patch.object(zsh_steps, "command_exists", have())
        mocker.patch.object(zsh_steps, "run_cmd", return_value=result(code=1))
        with pytest.raises(StepFailed, match="download"):
            InstallOhMyZshStep().run(ctx, state)
        apt["install"].assert_called_once_with(["curl"], dry_run=False)

    def test_directory_missing_after_install(self, ctx, state, mocker):
        mocker.patch.object(zsh_steps, "command_exists", have("curl"))
        mocker.patch.object(zsh_steps, "run_cmd", return_value=result())
        with pytest.raises(StepFailed, match="verification failed"):
            InstallOhMyZshStep().run(ctx, state)


class TestPluginsAndTheme:
    """Tests for InstallPluginsStep and InstallPowerlevel10kStep."""

    def test_clones_missing_plugins(self, ctx, cfg, state, mocker):
        mocker.patch.object(zsh_steps, "command_exists", have("git"))
        (cfg.zsh_custom_dir / "plugins" / "zsh-autosuggestions").mkdir(parents=True)
        clone = mocker.patch.object(zsh_steps, "git_clone")

        InstallPluginsStep().run(ctx, state)

        clone.assert_called_once_with(
            "https://github.com/zsh-users/zsh-syntax-highlighting.git",
            cfg.zsh_custom_dir / "plugins" / "zsh-syntax-highlighting",
            depth=None,
            dry_run=False,
        )
        assert state["execution"]["summary"]["plugins_installed"] == ["zsh-syntax-highlighting"]

    def test_clone_failure_is_step_failure(self, ctx, state, mocker):
        mocker.patch.object(zsh_steps, "command_exists", have("git"))
        mocker.patch.object(zsh_steps, "git_clone", side_effect=CommandError(["git"], 128))
        with pytest.raises(StepFailed, match="zsh-autosuggestions"):
            InstallPluginsStep().run(ctx, state)

    def test_missing_git_is_installed(self, ctx, state, mocker, apt):
        mocker.patch.object(zsh_steps, "command_exists", have())
        mocker.patch.object(zsh_steps, "git_clone")
        InstallPluginsStep().run(ctx, state)
        apt["install"].assert_called_once_with(["git"], dry_run=False)

    def test_p10k_shallow_clone(self, ctx, cfg, state, mocker):
        clone = mocker.patch.object(zsh_steps, "git_clone")
        InstallPowerlevel10kStep().run(ctx, state)
        clone.assert_called_once_with(
            "https://github.com/romkatv/powerlevel10k.git",
            cfg.zsh_custom_dir / "themes" / "powerlevel10k",
            depth=1,
            dry_run=False,
        )

    def test_p10k_present(self, ctx, cfg, state, mocker):
        (cfg.zsh_custom_dir / "themes" / "powerlevel10k").mkdir(parents=True)
        clone = mocker.patch.object(zsh_steps, "git_clone")
        InstallPowerlevel10kStep().run(ctx, state)
        clone.assert_not_called()


class TestConfigureZshrcStep:
    """Tests for ConfigureZshrcStep."""

    ZSHRC = 'export ZSH="$HOME/.oh-my-zsh"\nZSH_THEME="robbyrussell"\nplugins=(git)\nsource $ZSH/oh-my-zsh.sh\n'

    def test_missing_zshrc(self, ctx, state):
        with pytest.raises(StepFailed) as exc:
            ConfigureZshrcStep().run(ctx, state)
        assert exc.value.hint == "Oh My Zsh installation may have failed"

    def test_edits_and_backs_up(self, ctx, cfg, state):
        cfg.zshrc_path.write_text(self.ZSHRC)

        ConfigureZshrcStep().run(ctx, state)

        text = cfg.zshrc_path.read_text()
        assert 'ZSH_THEME="powerlevel10k/powerlevel10k"' in text
        assert "plugins=(git zsh-autosuggestions zsh-syntax-highlighting)" in text
        assert 'alias gitm="git checkout master"' in text
        backup = cfg.zshrc_path.with_name(".zshrc.backup.20250102_030405")
        assert backup.read_text() == self.ZSHRC
        assert state["execution"]["backups"][0]["backup"] == str(backup)

    def test_rerun_does_not_duplicate_aliases(self, ctx, cfg, state):
        cfg.zshrc_path.write_text(self.ZSHRC)
        ConfigureZshrcStep().run(ctx, state)
        ConfigureZshrcStep().run(ctx, state)
        assert cfg.zshrc_path.read_text().count(ALIAS_MARKER) == 1

    def test_dry_run_leaves_file(self, make_ctx, cfg, state):
        cfg.zshrc_path.write_text(self.ZSHRC)
        ConfigureZshrcStep().run(make_ctx(dry_run=True), state)
        assert cfg.zshrc_path.read_text() == self.ZSHRC
        assert not list(cfg.home.glob(".zshrc.backup.*"))

    def test_undecodable_zshrc_fails_before_backup(self, ctx, cfg, state):
        cfg.zshrc_path.write_bytes(b'ZSH_THEME="x"\n\xff\xfe\n')

        with pytest.raises(StepFailed, match="Failed to read"):
            ConfigureZshrcStep().run(ctx, state)
        assert not list(cfg.home.glob(".zshrc.backup.*"))
        assert state["execution"]["backups"] == []


class TestSetDefaultShellStep:
    """Tests for SetDefaultShellStep."""

    def test_is_not_fatal(self):
        assert SetDefaultShellStep.fatal is False

    def test_already_default(self, ctx, state, mocker, monkeypatch):
        monkeypatch.setenv("SHELL", "/usr/bin/zsh")
        mocker.patch.object(zsh_steps, "command_path", return_value="/usr/bin/zsh")
        run = mocker.patch.object(zsh_steps, "run_cmd")
        SetDefaultShellStep().run(ctx, state)
        run.assert_not_called()

    def test_changes_shell(self, ctx, state, mocker, monkeypatch):
        monkeypatch.setenv("SHELL", "/bin/bash")
        mocker.patch.object(zsh_steps, "command_path", return_value="/usr/bin/zsh")
        run = mocker.patch.object(zsh_steps, "run_cmd", return_value=result())
        SetDefaultShellStep().run(ctx, state)
        assert run.call_args.args[0] == ["chsh", "-s", "/usr/bin/zsh"]

    def test_chsh_failure_has_hint(self, ctx, state, mocker):
        mocker.patch.object(zsh_steps, "command_path", return_value="/usr/bin/zsh")
        mocker.patch.object(zsh_steps, "run_cmd", return_value=result(code=1))
        with pytest.raises(StepFailed) as exc:
            SetDefaultShellStep().run(ctx, state)
        assert exc.value.hint == "You can manually run: chsh -s /usr/bin/zsh"
