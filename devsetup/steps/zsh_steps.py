from __future__ import annotations

import logging
import os
from typing import Any, Dict, List

from ..context import SetupCtx
from ..lib.command import CommandError, command_exists, command_path, first_line, run_cmd
from ..lib.fsops import backup_file
from ..lib.git import git_clone
from ..lib.pkg import apt_install, apt_update
from ..lib.zshrc import ensure_aliases, has_aliases_block, set_plugins, set_theme
from ..pipeline import StepFailed
from ..state_store import record_backup

logger = logging.getLogger(__name__)


def _ensure_command(ctx: SetupCtx, command: str, package: str) -> None:
    if command_exists(command):
        return
    ctx.console.error(f"{command} is required but not installed")
    ctx.console.info(f"Installing {package}...")
    try:
        apt_install([package], dry_run=ctx.dry_run)
    except CommandError as e:
        raise StepFailed(f"Failed to install {package}") from e


class InstallZshStep:
    step_id = "zsh_10_install_zsh"
    title = "STEP 1: Installing Zsh"
    fatal = True

    def run(self, ctx: SetupCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ctx.console.banner(self.title)

        if command_exists("zsh"):
            ctx.console.info("Zsh is already installed!")
            version = first_line(["zsh", "--version"])
            if version:
                ctx.console.plain(version)
            else:
                ctx.console.error("Failed to get zsh version")
            return state

        ctx.console.info("Installing Zsh...")
        try:
            apt_update(dry_run=ctx.dry_run)
        except CommandError as e:
            raise StepFailed("Failed to update package lists") from e
        try:
            apt_install(["zsh"], dry_run=ctx.dry_run)
        except CommandError as e:
            raise StepFailed("Failed to install zsh") from e

        if not ctx.dry_run and not command_exists("zsh"):
            raise StepFailed("Zsh installation verification failed")
        ctx.console.success("Zsh installed successfully!")
        return state


class InstallOhMyZshStep:
    step_id = "zsh_20_install_ohmyzsh"
    title = "STEP 2: Installing Oh My Zsh"
    fatal = True

    def run(self, ctx: SetupCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ctx.console.banner(self.title)

        omz = ctx.cfg.ohmyzsh_dir
        if omz.is_dir():
            ctx.console.info("Oh My Zsh is already installed!")
            return state

        ctx.console.info("Installing Oh My Zsh...")
        _ensure_command(ctx, "curl", "curl")

        script = run_cmd(["curl", "-fsSL", ctx.cfg.ohmyzsh_install_url], check=False, dry_run=ctx.dry_run)
        if not script.ok:
            raise StepFailed("Failed to download the Oh My Zsh installer")

        r = run_cmd(
            ["sh", "-s", "--", "--unattended"],
            check=False,
            capture=False,
            input_text=script.stdout,
            env={"ZSH": str(omz), "RUNZSH": "no", "CHSH": "no"},
            dry_run=ctx.dry_run,
        )
        if not r.ok:
            raise StepFailed("Failed to install Oh My Zsh")
        if not ctx.dry_run and not omz.is_dir():
            raise StepFailed("Oh My Zsh installation verification failed")

        ctx.console.success("Oh My Zsh installed successfully!")
        return state


class InstallPluginsStep:
    step_id = "zsh_30_install_plugins"
    title = "STEP 3: Installing Zsh Plugins"
    fatal = True

    def run(self, ctx: SetupCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ctx.console.banner(self.title)
        _ensure_command(ctx, "git", "git")

        installed: List[str] = []
        for plugin in ctx.cfg.zsh_plugins:
            dest = ctx.cfg.zsh_custom_dir / "plugins" / plugin.name
            if dest.is_dir():
                ctx.console.info(f"{plugin.name} already installed!")
                continue
            ctx.console.info(f"Installing {plugin.name}...")
            try:
                git_clone(plugin.url, dest, depth=plugin.depth, dry_run=ctx.dry_run)
            except CommandError as e:
                raise StepFailed(f"Failed to install {plugin.name}") from e
            installed.append(plugin.name)
            ctx.console.success(f"{plugin.name} installed!")

        state.setdefault("execution", {}).setdefault("summary", {})["plugins_installed"] = installed
        return state


class InstallPowerlevel10kStep:
    step_id = "zsh_40_install_powerlevel10k"
    title = "STEP 4: Installing Powerlevel10k Theme"
    fatal = True

    def run(self, ctx: SetupCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ctx.console.banner(self.title)

        dest = ctx.cfg.zsh_custom_dir / "themes" / "powerlevel10k"
        if dest.is_dir():
            ctx.console.info("Powerlevel10k already installed!")
            return state

        ctx.console.info("Installing Powerlevel10k...")
        try:
            git_clone(ctx.cfg.p10k_url, dest, depth=1, dry_run=ctx.dry_run)
        except CommandError as e:
            raise StepFailed("Failed to install Powerlevel10k") from e
        ctx.console.success("Powerlevel10k installed!")
        return state


class ConfigureZshrcStep:
    step_id = "zsh_50_configure_zshrc"
    title = "STEP 5: Configuring .zshrc"
    fatal = True

    def run(self, ctx: SetupCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ctx.console.banner(self.title)

        zshrc = ctx.cfg.zshrc_path
        if not zshrc.is_file():
            raise StepFailed(f".zshrc not found at {zshrc}", hint="Oh My Zsh installation may have failed")

        try:
            text = zshrc.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StepFailed(f"Failed to read {zshrc}: {e}") from e

        try:
            backup = backup_file(zshrc, now=ctx.started_at, dry_run=ctx.dry_run)
        except OSError as e:
            raise StepFailed("Failed to backup .zshrc") from e
        record_backup(state, zshrc, backup)
        ctx.console.info(f"Backed up existing .zshrc to {backup}")

        ctx.console.info("Setting Powerlevel10k theme...")
        text = set_theme(text, ctx.cfg.zsh_theme)

        ctx.console.info("Enabling plugins...")
        text = set_plugins(text, ctx.cfg.zsh_enabled_plugins)

        ctx.console.info("Adding custom aliases...")
        if has_aliases_block(text):
            ctx.console.info("Custom aliases already present in .zshrc")
        else:
            text = ensure_aliases(text, ctx.cfg.zsh_aliases)
            ctx.console.success("Custom aliases added!")

        if ctx.dry_run:
            logger.info("Would write %s", zshrc)
        else:
            try:
                zshrc.write_text(text, encoding="utf-8")
            except OSError as e:
                raise StepFailed(f"Failed to write {zshrc}") from e

        ctx.console.success(".zshrc configured successfully!")
        return state


class SetDefaultShellStep:
    step_id = "zsh_60_set_default_shell"
    title = "STEP 6: Setting Zsh as Default Shell"
    fatal = False

    def run(self, ctx: SetupCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ctx.console.banner(self.title)

        zsh_path = command_path("zsh")
        if not zsh_path:
            raise StepFailed("zsh command not found")

        if os.environ.get("SHELL") == zsh_path:
            ctx.console.info("Zsh is already your default shell!")
            return state

        ctx.console.info(f"Changing default shell to Zsh at {zsh_path}...")
        r = run_cmd(["chsh", "-s", zsh_path], check=False, capture=False, dry_run=ctx.dry_run)
        if not r.ok:
            raise StepFailed(
                "Failed to change default shell",
                hint=f"You can manually run: chsh -s {zsh_path}",
            )
        ctx.console.success("Default shell changed to Zsh!")
        ctx.console.info("You'll need to log out and log back in for this to take effect.")
        return state
