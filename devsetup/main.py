from __future__ import annotations

import argparse
import logging
from typing import Any, Callable, Dict, List, Optional

import yaml

from . import __version__
from .config import load_setup_config
from .context import InvalidSetup, SetupCancelled, SetupCtx, ask_yes_no
from .lib.console import Console
from .logging_utils import configure_logging, default_log_path
from .pipeline import PipelineAborted, Step, check_step_range
from .recipes import (
    build_nvim_steps,
    build_zsh_steps,
    open_state,
    record_cancelled,
    run_nvim_remove_all,
    run_steps,
    show_nvim_summary,
    show_zsh_intro,
    show_zsh_summary,
)

logger = logging.getLogger(__name__)

DEFAULT_STATE_DIR = "~/.local/state/devsetup"

# what a malformed config or state file can raise while loading
_LOAD_ERRORS = (OSError, ValueError, yaml.YAMLError)


def _default_state_path(recipe: str) -> str:
    return f"{DEFAULT_STATE_DIR}/{recipe}.json"


def _options(args: argparse.Namespace) -> Dict[str, Any]:
    return {k: v for k, v in vars(args).items() if k != "func"}


def _prepare(args: argparse.Namespace, recipe: str, **ctx_flags: Any) -> tuple[SetupCtx, Dict[str, Any], str, str]:
    log_path = configure_logging(
        log_path=args.log or default_log_path(recipe),
        level=logging.DEBUG if args.verbose else logging.INFO,
        also_console=bool(args.verbose),
    )
    state_path = args.state or _default_state_path(recipe)
    try:
        cfg = load_setup_config(args.config)
        state = open_state(state_path, recipe=recipe, options=_options(args), log_path=log_path)
    except _LOAD_ERRORS as e:
        raise InvalidSetup(str(e)) from e
    ctx = SetupCtx(cfg=cfg, console=Console(), dry_run=bool(args.dry_run), confirm=ask_yes_no, **ctx_flags)
    return ctx, state, state_path, log_path


def _checked_steps(args: argparse.Namespace, build: Callable[..., List[Step]], **kwargs: Any) -> List[Step]:
    try:
        steps = build(**kwargs)
        check_step_range(steps, start_at=args.start_at, stop_after=args.stop_after)
    except ValueError as e:
        raise InvalidSetup(str(e)) from e
    return steps


def cmd_nvim(args: argparse.Namespace) -> int:
    ctx, state, state_path, log_path = _prepare(
        args,
        "nvim",
        force=bool(args.force),
        skip_backup=bool(args.skip_backup),
        no_compiler=bool(args.no_compiler),
    )

    ctx.console.header("Neovim Setup for Debian/Ubuntu")
    ctx.console.info("This will set up a complete Neovim development environment")

    if args.remove_all:
        return 0 if run_nvim_remove_all(ctx, state, state_path) else 1

    steps = _checked_steps(args, build_nvim_steps, fix_only=bool(args.fix_only), setup_only=bool(args.setup_only))
    result = run_steps(
        ctx=ctx,
        state=state,
        state_path=state_path,
        steps=steps,
        start_at=args.start_at,
        stop_after=args.stop_after,
    )
    show_nvim_summary(ctx, result)
    ctx.console.info(f"Setup log saved to: {log_path}")
    return 0


def cmd_zsh(args: argparse.Namespace) -> int:
    ctx, state, state_path, log_path = _prepare(args, "zsh")
    steps = _checked_steps(args, build_zsh_steps)

    show_zsh_intro(ctx)
    if not args.yes and not ctx.confirm("Continue with installation? (y/n) "):
        record_cancelled(state, state_path, "Installation cancelled.")
        raise SetupCancelled("Installation cancelled.")

    try:
        result = run_steps(
            ctx=ctx,
            state=state,
            state_path=state_path,
            steps=steps,
            start_at=args.start_at,
            stop_after=args.stop_after,
        )
    except PipelineAborted:
        ctx.console.info(f"Setup log saved to: {log_path}")
        return 1

    show_zsh_summary(ctx, result, log_path)
    return 0


def _add_common(sp: argparse.ArgumentParser) -> None:
    sp.add_argument("--config", default=None, help="YAML overrides (default: ~/.config/devsetup/config.yaml if present)")
    sp.add_argument("--state", default=None, help="Run record path (json|yaml)")
    sp.add_argument("--log", default=None, help="Log file path")
    sp.add_argument("--dry-run", action="store_true", help="Log commands and file writes without performing them")
    sp.add_argument("--start-at", default=None, help="Start at step_id")
    sp.add_argument("--stop-after", default=None, help="Stop after step_id")
    sp.add_argument("-v", "--verbose", action="store_true", help="Echo the debug log to the terminal")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="devsetup", description="Provision a Neovim or Zsh environment on Debian/Ubuntu")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    sub = p.add_subparsers(dest="recipe", required=True)

    sp = sub.add_parser("nvim", help="Set up Neovim config, tools, providers and compiler")
    _add_common(sp)
    sp.add_argument("-f", "--force", action="store_true", help="Back up and replace existing config without prompting")
    sp.add_argument("--skip-backup", action="store_true", help="Replace existing config without backing it up")
    mode = sp.add_mutually_exclusive_group()
    mode.add_argument("--fix-only", action="store_true", help="Only fix an existing configuration")
    mode.add_argument("--setup-only", action="store_true", help="Only write configuration files")
    mode.add_argument("--remove-all", action="store_true", help="Remove the Neovim configuration directory")
    sp.add_argument("--no-compiler", action="store_true", help="Skip C compiler installation")
    sp.set_defaults(func=cmd_nvim)

    sp = sub.add_parser("zsh", help="Set up Zsh, Oh My Zsh, plugins and Powerlevel10k")
    _add_common(sp)
    sp.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    sp.set_defaults(func=cmd_zsh)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    try:
        return int(args.func(args))
    except SetupCancelled as e:
        Console().error(str(e))
        return 1
    except InvalidSetup as e:
        logger.error("Invalid setup: %s", e)
        Console().error(str(e))
        return 2
    except KeyboardInterrupt:
        return 130
