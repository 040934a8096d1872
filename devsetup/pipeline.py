from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

from .context import SetupCtx
from .lib.command import CommandError
from .state_store import mark_step_completed, mark_step_failed

logger = logging.getLogger(__name__)


class StepFailed(RuntimeError):
    """A step could not do its job. `hint` is shown to the user."""

    def __init__(self, message: str, *, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.hint = hint


class PipelineAborted(RuntimeError):
    def __init__(self, step_id: str, cause: BaseException) -> None:
        super().__init__(f"{step_id}: {cause}")
        self.step_id = step_id
        self.cause = cause


class Step(Protocol):
    """A single idempotent step.

    fatal steps stop the run on failure; the others warn and continue.
    A step may also carry `requires`, a tuple of step ids; it is skipped
    when any of them failed or was itself held back in this run.
    """

    step_id: str
    title: str
    fatal: bool

    def run(self, ctx: SetupCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    ran_steps: List[str]
    failed_steps: List[str]
    skipped_steps: List[str]
    blocked_steps: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed_steps


def _known_step(steps: Sequence[Step], step_id: Optional[str], flag: str) -> None:
    if step_id is not None and step_id not in {s.step_id for s in steps}:
        known = ", ".join(s.step_id for s in steps)
        raise ValueError(f"{flag}: unknown step '{step_id}' (known: {known})")


def check_step_range(steps: Sequence[Step], *, start_at: Optional[str] = None, stop_after: Optional[str] = None) -> None:
    """Raise ValueError if start_at/stop_after name a step not in `steps`."""

    _known_step(steps, start_at, "start_at")
    _known_step(steps, stop_after, "stop_after")


def run_pipeline(
    *,
    ctx: SetupCtx,
    state: Dict[str, Any],
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
) -> PipelineResult:
    """Run steps in order.

    StepFailed/CommandError from a fatal step raises PipelineAborted; from a
    non-fatal step it is recorded as a warning. Anything else propagates.
    """

    check_step_range(steps, start_at=start_at, stop_after=stop_after)

    ran: List[str] = []
    failed: List[str] = []
    skipped: List[str] = []
    blocked: List[str] = []

    started = start_at is None
    exe = state.setdefault("execution", {})

    for step in steps:
        if not started:
            if step.step_id == start_at:
                started = True
            else:
                skipped.append(step.step_id)
                continue

        missing = [r for r in getattr(step, "requires", ()) if r in failed or r in blocked]
        if missing:
            blocked.append(step.step_id)
            logger.warning("Step %s not run: %s did not succeed", step.step_id, ", ".join(missing))
            ctx.console.info(f"Skipping {step.title}: {', '.join(missing)} did not succeed")
        else:
            exe["current_step"] = step.step_id
            logger.info("Running step %s", step.step_id)
            state = _run_one(ctx, state, step, failed, ran)

        if stop_after is not None and step.step_id == stop_after:
            logger.info("Stopping after %s", stop_after)
            break

    exe["current_step"] = None
    return PipelineResult(state=state, ran_steps=ran, failed_steps=failed, skipped_steps=skipped, blocked_steps=blocked)


def _run_one(ctx: SetupCtx, state: Dict[str, Any], step: Step, failed: List[str], ran: List[str]) -> Dict[str, Any]:
    try:
        state = step.run(ctx, state)
    except (StepFailed, CommandError) as e:
        failed.append(step.step_id)
        mark_step_failed(state, step.step_id, str(e), fatal=step.fatal)
        hint = getattr(e, "hint", None)
        if step.fatal:
            logger.error("Step %s failed: %s", step.step_id, e)
            ctx.console.error(f"{step.title} failed: {e}")
            if hint:
                ctx.console.info(hint)
            raise PipelineAborted(step.step_id, e) from e
        logger.warning("Step %s failed (continuing): %s", step.step_id, e)
        ctx.console.warning(f"{step.title} failed: {e}")
        if hint:
            ctx.console.info(hint)
    else:
        mark_step_completed(state, step.step_id)
        ran.append(step.step_id)
    return state
