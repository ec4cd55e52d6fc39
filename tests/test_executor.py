from __future__ import annotations

import asyncio

from job_finder.errors import ExecutionError
from job_finder.executor import WorkflowEngine
from job_finder.ledger import DedupLedger, InMemoryLedgerStore
from job_finder.schemas import ActionKind, ExecutionContext, Plan, Source, Step, StepOutput, StepStatus

SEARCH_OUTPUT = (
    "Here are the openings I found:\n"
    "1. Frontend Dev at Swiggy - Greenhouse - https://boards.greenhouse.io/swiggy/jobs/12345\n"
    "2. React Engineer at Razorpay - Lever - https://jobs.lever.co/razorpay/abc\n"
    "All links were checked for freshness."
)


class _ScriptedExecutor:
    def __init__(self, outputs: dict[str, StepOutput | Exception]) -> None:
        self.outputs = outputs
        self.calls: list[tuple[str, ExecutionContext]] = []

    def __call__(self, step: Step, context: ExecutionContext) -> StepOutput:
        self.calls.append((step.id, context))
        result = self.outputs[step.id]
        if isinstance(result, Exception):
            raise result
        return result


def _plan(*kinds: ActionKind) -> Plan:
    steps = [
        Step(id=f"s{i}", title=f"Step {i}", description=f"do {kind.value}", action_kind=kind)
        for i, kind in enumerate(kinds, 1)
    ]
    return Plan(name="Job Scout: React", steps=steps)


def _run(engine: WorkflowEngine, plan: Plan, ledger: DedupLedger, **kwargs):
    return asyncio.run(engine.run_plan(plan, "find React jobs", ledger, **kwargs))


def test_all_steps_complete_in_order() -> None:
    plan = _plan(ActionKind.ANALYSIS, ActionKind.GENERATION, ActionKind.FORMATTING)
    executor = _ScriptedExecutor({step.id: StepOutput(output=f"out {step.id}") for step in plan.steps})

    result = _run(WorkflowEngine(executor), plan, DedupLedger())

    assert result.succeeded is True
    assert result.failed_step_id is None
    assert [s.id for s in result.steps] == ["s1", "s2", "s3"]
    assert all(s.status == StepStatus.COMPLETED for s in result.steps)
    assert [s.output for s in result.steps] == ["out s1", "out s2", "out s3"]


def test_failure_halts_run_and_preserves_earlier_outputs() -> None:
    plan = _plan(ActionKind.SEARCH, ActionKind.ANALYSIS, ActionKind.GENERATION)
    executor = _ScriptedExecutor(
        {
            "s1": StepOutput(output=SEARCH_OUTPUT),
            "s2": ExecutionError("quota exceeded"),
            "s3": StepOutput(output="never"),
        }
    )
    ledger = DedupLedger()
    store = InMemoryLedgerStore()

    result = _run(WorkflowEngine(executor, store), plan, ledger)

    assert result.succeeded is False
    assert result.failed_step_id == "s2"
    first, second, third = result.steps
    assert first.status == StepStatus.COMPLETED and first.output == SEARCH_OUTPUT
    assert second.status == StepStatus.ERROR and second.error == "quota exceeded"
    assert second.output is None
    assert third.status == StepStatus.PENDING and third.output is None
    assert [call[0] for call in executor.calls] == ["s1", "s2"]
    assert len(ledger) == 0
    assert store.save_count == 0


def test_error_without_message_still_records_description() -> None:
    plan = _plan(ActionKind.ANALYSIS)
    executor = _ScriptedExecutor({"s1": RuntimeError()})

    result = _run(WorkflowEngine(executor), plan, DedupLedger())

    assert result.steps[0].status == StepStatus.ERROR
    assert result.steps[0].error == "RuntimeError"


def test_context_contains_only_earlier_outputs_in_order() -> None:
    plan = _plan(ActionKind.SEARCH, ActionKind.ANALYSIS, ActionKind.GENERATION)
    executor = _ScriptedExecutor({step.id: StepOutput(output=f"out {step.id}") for step in plan.steps})

    _run(WorkflowEngine(executor), plan, DedupLedger())

    contexts = [context for _, context in executor.calls]
    assert [list(c.step_outputs.values()) for c in contexts] == [
        [],
        ["out s1"],
        ["out s1", "out s2"],
    ]
    assert all(c.original_input == "find React jobs" for c in contexts)
    rendered = contexts[2].render()
    assert rendered.index("Step 1 Output:\nout s1") < rendered.index("Step 2 Output:\nout s2")


def test_running_is_observed_before_the_step_executes() -> None:
    plan = _plan(ActionKind.ANALYSIS, ActionKind.GENERATION)
    snapshots: list[list[StepStatus]] = []

    def executor(step: Step, context: ExecutionContext) -> StepOutput:
        assert snapshots[-1][int(step.id[1:]) - 1] == StepStatus.RUNNING
        return StepOutput(output="ok")

    _run(WorkflowEngine(executor), plan, DedupLedger(), on_update=lambda steps: snapshots.append([s.status for s in steps]))

    assert [StepStatus.RUNNING, StepStatus.PENDING] in snapshots
    assert [StepStatus.COMPLETED, StepStatus.RUNNING] in snapshots
    assert snapshots[-1] == [StepStatus.COMPLETED, StepStatus.COMPLETED]


def test_rerun_resets_terminal_steps_first() -> None:
    plan = _plan(ActionKind.ANALYSIS, ActionKind.GENERATION)
    plan.steps[0].start()
    plan.steps[0].complete("stale", [Source(title="old", uri="https://old.example")])
    plan.steps[1].start()
    plan.steps[1].fail("old failure")
    snapshots: list[list[Step]] = []
    executor = _ScriptedExecutor({"s1": StepOutput(output="fresh 1"), "s2": StepOutput(output="fresh 2")})

    result = _run(WorkflowEngine(executor), plan, DedupLedger(), on_update=snapshots.append)

    first_snapshot = snapshots[0]
    assert all(s.status == StepStatus.PENDING for s in first_snapshot)
    assert all(s.output is None and s.sources is None and s.error is None for s in first_snapshot)
    assert executor.calls[0][1].step_outputs == {}
    assert [s.output for s in result.steps] == ["fresh 1", "fresh 2"]
    assert result.steps[0].sources is None


def test_empty_plan_is_nothing_to_run() -> None:
    ledger = DedupLedger(entries=["Old at Co"])
    store = InMemoryLedgerStore()

    result = _run(WorkflowEngine(_ScriptedExecutor({}), store), Plan(name="empty"), ledger)

    assert result.succeeded is True
    assert result.steps == []
    assert ledger.entries == ["Old at Co"]
    assert store.save_count == 0


def test_end_to_end_react_jobs_updates_ledger() -> None:
    plan = _plan(ActionKind.SEARCH, ActionKind.ANALYSIS, ActionKind.GENERATION)
    executor = _ScriptedExecutor(
        {
            "s1": StepOutput(
                output=SEARCH_OUTPUT,
                sources=[Source(title="greenhouse.io", uri="https://boards.greenhouse.io/swiggy/jobs/12345")],
            ),
            "s2": StepOutput(output="React, TypeScript, Redux"),
            "s3": StepOutput(output="Dear Hiring Manager, ..."),
        }
    )
    ledger = DedupLedger(entries=["Backend Dev at Zomato"])
    store = InMemoryLedgerStore()

    result = _run(WorkflowEngine(executor, store), plan, ledger)

    assert result.succeeded is True
    assert [s.status for s in result.steps] == [StepStatus.COMPLETED] * 3
    assert [s.output for s in result.steps] == [SEARCH_OUTPUT, "React, TypeScript, Redux", "Dear Hiring Manager, ..."]
    assert len(result.steps[0].sources) == 1
    assert ledger.entries == ["Backend Dev at Zomato", "Frontend Dev at Swiggy", "React Engineer at Razorpay"]
    assert result.seen_companies == ledger.entries
    assert store.saved == ledger.entries
    assert store.save_count == 1


def test_only_search_steps_feed_the_ledger() -> None:
    plan = _plan(ActionKind.ANALYSIS)
    executor = _ScriptedExecutor({"s1": StepOutput(output=SEARCH_OUTPUT)})
    ledger = DedupLedger()

    _run(WorkflowEngine(executor), plan, ledger)

    assert len(ledger) == 0


def test_failure_at_first_step_leaves_rest_pending_and_ledger_untouched() -> None:
    plan = _plan(ActionKind.SEARCH, ActionKind.ANALYSIS, ActionKind.GENERATION)
    executor = _ScriptedExecutor({"s1": ExecutionError("search tool unavailable")})
    ledger = DedupLedger(entries=["Backend Dev at Zomato"])
    store = InMemoryLedgerStore()

    result = _run(WorkflowEngine(executor, store), plan, ledger)

    assert result.succeeded is False
    assert result.failed_step_id == "s1"
    assert [s.status for s in result.steps] == [StepStatus.ERROR, StepStatus.PENDING, StepStatus.PENDING]
    assert result.steps[0].error == "search tool unavailable"
    assert [call[0] for call in executor.calls] == ["s1"]
    assert ledger.entries == ["Backend Dev at Zomato"]
    assert store.save_count == 0


def test_failure_at_last_step_keeps_every_earlier_output() -> None:
    plan = _plan(ActionKind.SEARCH, ActionKind.ANALYSIS, ActionKind.GENERATION)
    executor = _ScriptedExecutor(
        {
            "s1": StepOutput(output=SEARCH_OUTPUT),
            "s2": StepOutput(output="React, Redux"),
            "s3": ExecutionError("Model returned no output."),
        }
    )
    ledger = DedupLedger()
    store = InMemoryLedgerStore()

    result = _run(WorkflowEngine(executor, store), plan, ledger)

    assert result.succeeded is False
    assert result.failed_step_id == "s3"
    assert [s.status for s in result.steps] == [StepStatus.COMPLETED, StepStatus.COMPLETED, StepStatus.ERROR]
    assert [s.output for s in result.steps[:2]] == [SEARCH_OUTPUT, "React, Redux"]
    assert len(ledger) == 0
    assert store.save_count == 0


def test_unusable_executor_result_marks_step_as_error() -> None:
    plan = _plan(ActionKind.SEARCH, ActionKind.ANALYSIS)

    def executor(step: Step, context: ExecutionContext):
        return None

    result = _run(WorkflowEngine(executor), plan, DedupLedger())

    assert result.succeeded is False
    assert result.failed_step_id == "s1"
    assert result.steps[0].status == StepStatus.ERROR
    assert result.steps[0].error == "Step returned no usable output."
    assert result.steps[1].status == StepStatus.PENDING


class _BrokenStore(InMemoryLedgerStore):
    def save(self, ledger: DedupLedger) -> None:
        raise OSError("disk full")


def test_history_save_failure_does_not_fail_the_run() -> None:
    plan = _plan(ActionKind.SEARCH)
    executor = _ScriptedExecutor({"s1": StepOutput(output=SEARCH_OUTPUT)})
    ledger = DedupLedger()

    result = _run(WorkflowEngine(executor, _BrokenStore()), plan, ledger)

    assert result.succeeded is True
    assert result.steps[0].status == StepStatus.COMPLETED
    assert ledger.entries == ["Frontend Dev at Swiggy", "React Engineer at Razorpay"]
    assert result.seen_companies == ledger.entries
