import asyncio
import json
import logging
import threading

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from job_finder.agents.planner import create_plan
from job_finder.agents.step_runner import execute_step
from job_finder.config import LOG_LEVEL
from job_finder.errors import PlanningError
from job_finder.executor import WorkflowEngine
from job_finder.ledger import JsonLedgerStore
from job_finder.prompts import build_search_request
from job_finder.schemas import Plan, RunResult, Step

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Job Finder Workflow Agent")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

ledger_store = JsonLedgerStore()

# Held for the whole of a run; a second run is rejected rather than queued.
_run_lock = threading.Lock()


class SearchForm(BaseModel):
    job_type: str
    location: str = "India"


class PlannedWorkflow(BaseModel):
    plan: Plan
    original_input: str


class RunRequest(BaseModel):
    plan: Plan
    original_input: str


class History(BaseModel):
    entries: list[str]
    capacity: int


def _build_engine() -> WorkflowEngine:
    return WorkflowEngine(execute_step, ledger_store)


def _acquire_run() -> None:
    if not _run_lock.acquire(blocking=False):
        raise HTTPException(status_code=409, detail="A workflow run is already in progress.")


@app.post("/plan", response_model=PlannedWorkflow)
async def plan_endpoint(req: SearchForm):
    """Plan a search → analyze → write workflow for the given job type and location."""
    try:
        ledger = await asyncio.to_thread(ledger_store.load)
        request = build_search_request(req.job_type, req.location, ledger)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    try:
        plan = await asyncio.to_thread(
            create_plan, request.goal, request.sample_input, request.workflow_name
        )
    except PlanningError as e:
        logger.error(f"Failed to generate plan: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return PlannedWorkflow(plan=plan, original_input=request.original_input)


@app.post("/execute", response_model=RunResult)
async def execute_endpoint(req: RunRequest):
    """Run a previously planned workflow and return every step's final state."""
    _acquire_run()
    try:
        return await _build_engine().run_plan(
            req.plan, req.original_input, await asyncio.to_thread(ledger_store.load)
        )
    finally:
        _run_lock.release()


def _update_event(steps: list[Step]) -> dict:
    return {"event": "update", "steps": [step.model_dump(mode="json") for step in steps]}


@app.post("/execute/stream")
async def execute_stream_endpoint(req: RunRequest):
    """Run a workflow, streaming a step snapshot as NDJSON on every state change."""
    _acquire_run()
    queue: asyncio.Queue = asyncio.Queue()

    async def produce() -> None:
        try:
            result = await _build_engine().run_plan(
                req.plan,
                req.original_input,
                await asyncio.to_thread(ledger_store.load),
                on_update=lambda steps: queue.put_nowait(_update_event(steps)),
            )
            queue.put_nowait({"event": "result", "result": result.model_dump(mode="json")})
        except Exception as e:
            logger.exception("Workflow run crashed")
            queue.put_nowait({"event": "error", "detail": str(e)})
        finally:
            _run_lock.release()
            queue.put_nowait(None)

    task = asyncio.create_task(produce())

    async def events():
        while True:
            item = await queue.get()
            if item is None:
                break
            yield json.dumps(item) + "\n"
        await task

    return StreamingResponse(events(), media_type="application/x-ndjson")


@app.get("/history", response_model=History)
async def history_endpoint():
    ledger = await asyncio.to_thread(ledger_store.load)
    return History(entries=ledger.entries, capacity=ledger.capacity)


@app.delete("/history", response_model=History)
async def clear_history_endpoint():
    ledger = await asyncio.to_thread(ledger_store.load)
    ledger.clear()
    try:
        await asyncio.to_thread(ledger_store.save, ledger)
    except OSError as e:
        logger.error(f"Failed to clear history: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to clear search history: {e}")
    return History(entries=[], capacity=ledger.capacity)
