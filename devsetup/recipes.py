from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .context import SetupCtx
from .pipeline import PipelineAborted, PipelineResult, Step, StepFailed, run_pipeline
from .state_store import ensure_defaults, load_state, save_state
from .steps import (
    CheckCompilerStep,
    ConfigureZshrcStep,
    FixConfigStep,
    InstallCompilerStep,
    InstallOhMyZshStep,
    InstallPluginsStep,
    InstallPowerlevel10kStep,
    InstallProvidersStep,
    InstallToolsStep,
    InstallZshStep,
    SetDefaultShellStep,
    SetupConfigStep,
    ShowCompilerInfoStep,
)
from .steps.nvim_steps import remove_all

logger = logging.getLogger(__name__)

ZSH_COMPONENTS = [
    "Zsh shell",
    "Oh My Zsh framework",
    "zsh-autosuggestions plugin",
    "zsh-syntax-highlighting plugin",
    "Powerlevel10k theme",
    "Custom aliases",
]


def _requiring(step: Step, *step_ids: str) -> Step:
    setattr(step, "requires", tuple(step_ids))
    return step


def build_nvim_steps(*, fix_only: bool = False, setup_only: bool = False) -> List[Step]:
    if fix_only and setup_only:
        raise ValueError("--fix-only and --setup-only are mutually exclusive")

    if fix_only:
        # nothing to fix means nothing to install
        fix = FixConfigStep()
        middle: List[Step] = [
            fix,
            *(_requiring(s, fix.step_id) for s in (InstallToolsStep(), InstallProvidersStep(), InstallCompilerStep())),
        ]
    elif setup_only:
        middle = [SetupConfigStep()]
    else:
        middle = [SetupConfigStep(), InstallToolsStep(), InstallProvidersStep(), InstallCompilerStep()]
    return [ShowCompilerInfoStep(), *middle, CheckCompilerStep()]


def build_zsh_steps() -> List[Step]:
    return [
        InstallZshStep(),
        InstallOhMyZshStep(),
        InstallPluginsStep(),
        InstallPowerlevel10kStep(),
        ConfigureZshrcStep(),
        SetDefaultShellStep(),
    ]


def open_state(state_path: str, *, recipe: str, options: Dict[str, Any], log_path: str) -> Dict[str, Any]:
    state = ensure_defaults(load_state(state_path))
    state["recipe"] = recipe
    state["config"] = dict(options)
    state["execution"]["paths"]["log_path"] = log_path
    return state


def run_steps(
    *,
    ctx: SetupCtx,
    state: Dict[str, Any],
    state_path: str,
    steps: List[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
) -> PipelineResult:
    """Run a recipe's steps, persisting the run record whatever happens."""

    try:
        result = run_pipeline(ctx=ctx, state=state, steps=steps, start_at=start_at, stop_after=stop_after)
        summary = result.state["execution"].setdefault("summary", {})
        summary["ran_steps"] = result.ran_steps
        summary["failed_steps"] = result.failed_steps
        summary["skipped_steps"] = result.skipped_steps
        summary["blocked_steps"] = result.blocked_steps
        return result
    except PipelineAborted:
        raise
    except Exception as e:
        logger.exception("Setup failed")
        state.setdefault("execution", {}).setdefault("errors", []).append(
            {
                "step": (state.get("execution") or {}).get("current_step"),
                "error": str(e),
            }
        )
        raise
    finally:
        save_state(state_path, state)


def run_nvim_remove_all(ctx: SetupCtx, state: Dict[str, Any], state_path: str) -> bool:
    """Returns False if the config dir could not be removed."""

    try:
        remove_all(ctx, state)
        return True
    except StepFailed as e:
        logger.error("Remove failed: %s", e)
        state["execution"]["errors"].append({"step": "nvim_remove_all", "error": str(e)})
        ctx.console.error(str(e))
        return False
    finally:
        save_state(state_path, state)


def record_cancelled(state: Dict[str, Any], state_path: str, reason: str) -> None:
    state["execution"]["summary"]["cancelled"] = reason
    save_state(state_path, state)


def show_nvim_summary(ctx: SetupCtx, result: PipelineResult) -> None:
    c = ctx.console
    c.header("Setup Complete!" if result.ok else "Setup Finished With Warnings")
    for step_id in result.ran_steps:
        c.success(f"{step_id}")
    for step_id in result.failed_steps:
        c.warning(f"{step_id} (see log)")
    for step_id in result.blocked_steps:
        c.info(f"{step_id} not run")

    c.header("Next Steps")
    c.info("1. Open Neovim: nvim")
    c.info("2. Wait for plugins to install automatically")
    c.info("3. Restart Neovim")
    c.info("4. Run :checkhealth to verify everything is working")
    c.info("5. Run :Mason to install additional language servers")
    c.info("6. Run :TSUpdate to update TreeSitter parsers")

    c.header("Key Features")
    for keys, what in (
        ("<Space>e", "File Explorer"),
        ("<Space>ff", "Find Files"),
        ("<Space>fs", "Find Text"),
        ("<Space>tw", "Toggle Whitespace"),
        ("<Space>xx", "Show Diagnostics"),
        ("gd", "Go to Definition"),
        ("<Space>ca", "Code Actions"),
        ("<Space>rn", "Rename"),
        ("gcc", "Comment"),
    ):
        c.info(f"{what}: {keys}")

    c.header("Troubleshooting")
    c.info("If you encounter C compiler errors:")
    c.info("1. Run this setup again to install the compiler toolchain")
    c.info("2. Or install build-essential: sudo apt install build-essential")
    c.info("3. Or run with --no-compiler to skip compiler setup")

    config_dir = ctx.cfg.nvim_config_dir
    c.header("Neovim Config Location")
    c.info(f"Your Neovim configuration directory: {config_dir}")
    c.info(f"Main config file: {config_dir / 'init.lua'}")


def show_zsh_intro(ctx: SetupCtx) -> None:
    c = ctx.console
    c.banner("AUTOMATED ZSH SETUP")
    c.info("This will install and configure:")
    for item in ZSH_COMPONENTS:
        c.plain(f"  • {item}")
    c.plain()


def show_zsh_summary(ctx: SetupCtx, result: PipelineResult, log_path: str) -> None:
    c = ctx.console
    c.banner("INSTALLATION COMPLETE!")
    c.success("Zsh has been successfully installed and configured!")
    if SetDefaultShellStep.step_id in result.failed_steps:
        c.info("You may need to manually set zsh as your default shell")
    c.plain()
    c.info("Next steps:")
    c.plain("  1. Exit your current shell and open a new terminal")
    c.plain("  2. Run 'p10k configure' to customize your Powerlevel10k theme")
    c.plain("  3. Enjoy your new shell!")
    c.plain()
    if result.state["execution"].get("backups"):
        c.info("Your old .zshrc has been backed up with a timestamp.")
    c.info(f"Setup log saved to: {log_path}")
