from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

from ..context import SetupCtx
from ..lib.command import CommandError, command_exists, first_line, run_cmd
from ..lib.fsops import backup_tree, copy_tree, remove_tree
from ..lib.pkg import apt_install, apt_update, ensure_fd_symlink
from ..pipeline import StepFailed
from ..state_store import add_warning, record_backup

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates" / "nvim"

CONFIG_SUBDIRS = ("lua", "lua/config", "lua/plugins")

C_COMPILERS = ("gcc", "clang", "cc")


def write_config_files(ctx: SetupCtx, config_dir: Path) -> List[str]:
    try:
        written = copy_tree(TEMPLATE_DIR, config_dir, dry_run=ctx.dry_run)
    except OSError as e:
        raise StepFailed(f"Failed to write configuration files into {config_dir}: {e}") from e
    for rel in written:
        ctx.console.success(f"Created: {rel}")
    return written


def _remove(ctx: SetupCtx, config_dir: Path) -> None:
    try:
        remove_tree(config_dir, dry_run=ctx.dry_run)
    except OSError as e:
        raise StepFailed(f"Failed to remove {config_dir}: {e}") from e


class ShowCompilerInfoStep:
    step_id = "nvim_10_compiler_info"
    title = "Compiler Information"
    fatal = False

    def run(self, ctx: SetupCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ctx.console.header(self.title)
        found: Dict[str, str] = {}
        for name, label in (("gcc", "GCC"), ("clang", "Clang"), ("make", "Make")):
            version = first_line([name, "--version"])
            if version:
                found[name] = version
                ctx.console.info(f"{label} found: {version}")
        state.setdefault("execution", {}).setdefault("summary", {})["toolchain"] = found
        return state


class SetupConfigStep:
    step_id = "nvim_20_setup_config"
    title = "Neovim Configuration Setup"
    fatal = False

    def _clear_existing(self, ctx: SetupCtx, state: Dict[str, Any], config_dir: Path) -> None:
        if ctx.skip_backup:
            ctx.console.info(f"Removing existing configuration without backup: {config_dir}")
            _remove(ctx, config_dir)
            return

        ctx.console.warning("Existing Neovim configuration found!")
        if not ctx.force and not ctx.confirm("Do you want to backup and replace it? (y/N): "):
            raise StepFailed("Setup cancelled.")

        try:
            backup = backup_tree(config_dir, now=ctx.started_at, dry_run=ctx.dry_run)
        except OSError as e:
            raise StepFailed(f"Failed to back up {config_dir}: {e}") from e
        ctx.console.info(f"Creating backup at: {backup}")
        record_backup(state, config_dir, backup)
        _remove(ctx, config_dir)

    def run(self, ctx: SetupCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ctx.console.header(self.title)
        ctx.console.info("Checking prerequisites...")

        if not command_exists("nvim"):
            raise StepFailed(
                "Neovim is not installed or not in PATH!",
                hint="Install it with: sudo apt install neovim "
                "(or download from https://github.com/neovim/neovim/releases)",
            )
        if not command_exists("git"):
            raise StepFailed("Git is not installed or not in PATH!", hint="Install it with: sudo apt install git")
        ctx.console.success("Prerequisites check passed!")

        config_dir = ctx.cfg.nvim_config_dir
        if config_dir.exists():
            self._clear_existing(ctx, state, config_dir)

        ctx.console.header("Creating Directory Structure")
        for rel in ("", *CONFIG_SUBDIRS):
            d = config_dir / rel
            if not ctx.dry_run:
                try:
                    d.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    raise StepFailed(f"Failed to create {d}: {e}") from e
            ctx.console.success(f"Created: {d}")

        ctx.console.header("Creating Configuration Files")
        written = write_config_files(ctx, config_dir)

        state.setdefault("execution", {}).setdefault("paths", {})["nvim_config_dir"] = str(config_dir)
        state["execution"].setdefault("summary", {})["nvim_files"] = written
        ctx.console.success("Neovim configuration has been successfully installed!")
        ctx.console.info(f"Configuration location: {config_dir}")
        return state


class FixConfigStep:
    step_id = "nvim_20_fix_config"
    title = "Fixing Existing Configuration"
    fatal = False

    def run(self, ctx: SetupCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ctx.console.header(self.title)
        config_dir = ctx.cfg.nvim_config_dir
        if not config_dir.is_dir():
            raise StepFailed(
                f"No existing Neovim configuration found at {config_dir}",
                hint="Run without --fix-only to create a new configuration",
            )

        if (config_dir / "lua" / "plugins" / "init.lua").is_file():
            ctx.console.info("Fixing plugins/init.lua...")
            written = write_config_files(ctx, config_dir)
            state.setdefault("execution", {}).setdefault("summary", {})["nvim_files"] = written
            ctx.console.success("Configuration files updated")
        else:
            ctx.console.info("No plugins/init.lua found, leaving configuration files untouched")
        return state


class InstallToolsStep:
    step_id = "nvim_30_install_tools"
    title = "Installing Missing Tools via APT"
    fatal = False

    def run(self, ctx: SetupCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ctx.console.header(self.title)

        to_install: List[str] = []
        for tool in ctx.cfg.nvim_tools:
            if command_exists(tool.command):
                ctx.console.success(f"{tool.command} already installed")
            else:
                ctx.console.info(f"Will install {tool.package} - {tool.command} ({tool.purpose})")
                if tool.package not in to_install:
                    to_install.append(tool.package)

        state.setdefault("execution", {}).setdefault("summary", {})["tools_installed"] = to_install
        if not to_install:
            return state

        ctx.console.info(f"Installing packages: {' '.join(to_install)}")
        apt_update(dry_run=ctx.dry_run)
        apt_install(to_install, dry_run=ctx.dry_run)

        if ensure_fd_symlink(dry_run=ctx.dry_run):
            ctx.console.info("Created fd symlink")
        return state


class InstallProvidersStep:
    step_id = "nvim_40_install_providers"
    title = "Installing Node.js and Python Providers"
    fatal = False

    def _node(self, ctx: SetupCtx, state: Dict[str, Any]) -> bool:
        if not command_exists("npm"):
            ctx.console.warning("npm not found. Installing Node.js...")
            apt_install(["nodejs", "npm"], dry_run=ctx.dry_run)
            if not ctx.dry_run and not command_exists("npm"):
                ctx.console.warning("Failed to install Node.js. Node.js provider will remain unavailable.")
                add_warning(state, self.step_id, "nodejs provider unavailable")
                return False

        ctx.console.info("Installing neovim npm package...")
        r = run_cmd(["npm", "install", "-g", "neovim"], check=False, capture=False, dry_run=ctx.dry_run)
        if not r.ok:
            ctx.console.warning("Failed to install neovim npm package")
            add_warning(state, self.step_id, "npm install -g neovim failed")
            return False
        ctx.console.success("Node.js provider installed")
        return True

    def _python(self, ctx: SetupCtx, state: Dict[str, Any]) -> bool:
        pip = next((p for p in ("pip3", "pip") if command_exists(p)), None)
        if pip is None:
            ctx.console.warning("pip not found. Installing Python3 and pip...")
            apt_install(["python3", "python3-pip"], dry_run=ctx.dry_run)
            if not ctx.dry_run and not command_exists("pip3"):
                ctx.console.warning("Failed to install pip. Python provider will remain unavailable.")
                add_warning(state, self.step_id, "python provider unavailable")
                return False
            pip = "pip3"

        ctx.console.info("Installing pynvim package...")
        r = run_cmd([pip, "install", "--user", "pynvim"], check=False, capture=False, dry_run=ctx.dry_run)
        if not r.ok:
            ctx.console.warning("Failed to install pynvim")
            add_warning(state, self.step_id, f"{pip} install --user pynvim failed")
            return False
        ctx.console.success("Python provider installed")
        return True

    def run(self, ctx: SetupCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ctx.console.header(self.title)
        providers: Dict[str, bool] = {}
        for name, install in (("node", self._node), ("python", self._python)):
            try:
                providers[name] = install(ctx, state)
            except CommandError as e:
                ctx.console.warning(f"{name} provider setup failed: {e}")
                add_warning(state, self.step_id, str(e))
                providers[name] = False
        state.setdefault("execution", {}).setdefault("summary", {})["providers"] = providers
        return state


class InstallCompilerStep:
    step_id = "nvim_50_install_compiler"
    title = "Installing C Compiler Tools"
    fatal = False

    def run(self, ctx: SetupCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ctx.console.header(self.title)

        if ctx.no_compiler:
            ctx.console.info("Skipping compiler installation as requested")
            return state

        if command_exists("gcc"):
            ctx.console.success(f"GCC compiler already installed: {first_line(['gcc', '--version']) or 'gcc'}")
            return state

        ctx.console.info("Installing build-essential and development tools...")
        apt_update(dry_run=ctx.dry_run)
        apt_install(ctx.cfg.compiler_packages, dry_run=ctx.dry_run)

        if ctx.dry_run or command_exists("gcc"):
            ctx.console.success("Compiler tools installed successfully")
        else:
            ctx.console.warning("Failed to install compiler tools")
            ctx.console.info("TreeSitter compilation may not work without a C compiler")
            add_warning(state, self.step_id, "gcc still missing after install")
        return state


class CheckCompilerStep:
    step_id = "nvim_60_check_compiler"
    title = "Testing Compiler Availability"
    fatal = False

    def run(self, ctx: SetupCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ctx.console.header(self.title)
        found = [c for c in C_COMPILERS if command_exists(c)]
        for c in found:
            ctx.console.success(f"Found compiler: {c}")
        if not found:
            ctx.console.warning("No C compiler found in PATH")
            ctx.console.info("TreeSitter parsers may not compile properly")
            add_warning(state, self.step_id, "no C compiler in PATH")
        state.setdefault("execution", {}).setdefault("summary", {})["compilers"] = found
        return state


def remove_all(ctx: SetupCtx, state: Dict[str, Any]) -> bool:
    """Delete the whole Neovim config dir. Returns True if something was removed.

    Raises StepFailed if the directory cannot be removed.
    """

    config_dir = ctx.cfg.nvim_config_dir
    if not config_dir.exists():
        ctx.console.info(f"No Neovim configuration directory found at {config_dir}. Nothing to remove.")
        return False
    _remove(ctx, config_dir)
    state.setdefault("execution", {}).setdefault("summary", {})["removed"] = str(config_dir)
    ctx.console.success(f"All Neovim configuration files and directories have been removed: {config_dir}")
    return True


__all__ = [
    "CheckCompilerStep",
    "FixConfigStep",
    "InstallCompilerStep",
    "InstallProvidersStep",
    "InstallToolsStep",
    "SetupConfigStep",
    "ShowCompilerInfoStep",
    "remove_all",
    "write_config_files",
]
