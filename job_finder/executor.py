import asyncio
import logging
import time
from typing import Callable

from job_finder.errors import ExecutionError
from job_finder.extraction import extract_entity_names
from job_finder.ledger import DedupLedger, LedgerStore
from job_finder.schemas import ActionKind, ExecutionContext, Plan, RunResult, Step, StepOutput

logger = logging.getLogger(__name__)

StepExecutor = Callable[[Step, ExecutionContext], StepOutput]
UpdateCallback = Callable[[list[Step]], None]


def _snapshot(steps: list[Step]) -> list[Step]:
    return [step.model_copy(deep=True) for step in steps]


class WorkflowEngine:
    """Runs a plan's steps one at a time, threading earlier outputs into later steps.

    The first failing step halts the run; steps before it keep their outputs and
    steps after it stay pending. Company names found by search steps are merged
    into the ledger only when every step completed.
    """

    def __init__(self, step_executor: StepExecutor, ledger_store: LedgerStore | None = None) -> None:
        self.step_executor = step_executor
        self.ledger_store = ledger_store

    async def run_plan(
        self,
        plan: Plan,
        original_input: str,
        ledger: DedupLedger,
        on_update: UpdateCallback | None = None,
    ) -> RunResult:
        steps = plan.steps
        for step in steps:
            step.reset()

        def notify() -> None:
            if on_update is not None:
                on_update(_snapshot(steps))

        if not steps:
            logger.info(f"Plan '{plan.name}' has no steps; nothing to run")
            return RunResult(workflow_name=plan.name, steps=[], succeeded=True, seen_companies=ledger.entries)

        notify()
        context = ExecutionContext(original_input=original_input)
        collected: list[str] = []

        for index, step in enumerate(steps, 1):
            step.start()
            notify()
            logger.info(f"Step {index}/{len(steps)} '{step.title}' ({step.action_kind.value}) started")

            step_context = context.model_copy(deep=True)
            start = time.perf_counter()
            try:
                result = await asyncio.to_thread(self.step_executor, step.model_copy(deep=True), step_context)
                if not isinstance(result, StepOutput) or not (result.output or "").strip():
                    raise ExecutionError("Step returned no usable output.")
            except Exception as e:
                step.duration_ms = int((time.perf_counter() - start) * 1000)
                step.fail(str(e) or type(e).__name__)
                logger.error(f"Step {index} '{step.title}' failed: {step.error}")
                notify()
                return RunResult(
                    workflow_name=plan.name,
                    steps=_snapshot(steps),
                    succeeded=False,
                    failed_step_id=step.id,
                    seen_companies=ledger.entries,
                )

            step.duration_ms = int((time.perf_counter() - start) * 1000)
            context.step_outputs[step.id] = result.output
            step.complete(result.output, result.sources)
            logger.info(f"Step {index} '{step.title}' completed in {step.duration_ms}ms")

            if step.action_kind == ActionKind.SEARCH:
                names = extract_entity_names(result.output)
                logger.debug(f"  Extracted {len(names)} company candidates")
                collected.extend(names)
            notify()

        ledger.add(collected)
        if self.ledger_store is not None:
            try:
                await asyncio.to_thread(self.ledger_store.save, ledger)
            except OSError as e:
                logger.warning(f"Failed to persist history: {e}")

        return RunResult(
            workflow_name=plan.name,
            steps=_snapshot(steps),
            succeeded=True,
            seen_companies=ledger.entries,
        )
