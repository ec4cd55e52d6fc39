import uuid
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

ORIGINAL_INPUT_LIMIT = 1000
STEP_OUTPUT_LIMIT = 2000


class ActionKind(str, Enum):
    SEARCH = "search"
    ANALYSIS = "analysis"
    GENERATION = "generation"
    EXTRACTION = "extraction"
    FORMATTING = "formatting"
    SIMULATION = "simulation"


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class Source(BaseModel):
    title: str
    uri: str


class PlanStepSpec(BaseModel):
    title: str = Field(description="Short title of the step")
    description: str = Field(description="Detailed instruction for what this step should do with the data")
    action_type: ActionKind = Field(description="The type of action performed: search, analysis, generation, extraction, formatting or simulation")


class PlanResponse(BaseModel):
    workflow_name: str = Field(description="A creative name for this automation workflow")
    steps: list[PlanStepSpec] = Field(description="Ordered list of steps to execute")


class Step(BaseModel):
    id: str
    title: str
    description: str
    action_kind: ActionKind
    status: StepStatus = StepStatus.PENDING
    output: str | None = None
    sources: list[Source] | None = None
    error: str | None = None
    duration_ms: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.status in (StepStatus.COMPLETED, StepStatus.ERROR)

    def start(self) -> None:
        if self.status != StepStatus.PENDING:
            raise ValueError(f"Step {self.id} cannot start from {self.status.value}")
        self.status = StepStatus.RUNNING

    def complete(self, output: str, sources: list[Source] | None = None) -> None:
        if self.status != StepStatus.RUNNING:
            raise ValueError(f"Step {self.id} cannot complete from {self.status.value}")
        self.status = StepStatus.COMPLETED
        self.output = output
        self.sources = list(sources) if sources else None
        self.error = None

    def fail(self, error: str) -> None:
        if self.status != StepStatus.RUNNING:
            raise ValueError(f"Step {self.id} cannot fail from {self.status.value}")
        self.status = StepStatus.ERROR
        self.error = error or "Unknown error"
        self.output = None
        self.sources = None

    def reset(self) -> None:
        self.status = StepStatus.PENDING
        self.output = None
        self.sources = None
        self.error = None
        self.duration_ms = 0


class Plan(BaseModel):
    name: str
    steps: list[Step] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_step_ids(self) -> "Plan":
        seen = set()
        for step in self.steps:
            if step.id in seen:
                raise ValueError(f"Duplicate step id: {step.id}")
            seen.add(step.id)
        return self


def materialize_plan(response: PlanResponse, name: str | None = None) -> Plan:
    """Turn a validated planner response into runnable, pending steps."""
    token = uuid.uuid4().hex[:8]
    steps = [
        Step(
            id=f"step-{token}-{i}",
            title=spec.title,
            description=spec.description,
            action_kind=spec.action_type,
        )
        for i, spec in enumerate(response.steps)
    ]
    return Plan(name=name or response.workflow_name, steps=steps)


class StepOutput(BaseModel):
    output: str
    sources: list[Source] | None = None

    @field_validator("output")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Model returned no output. It might have failed to use the search tool.")
        return value


class ExecutionContext(BaseModel):
    original_input: str
    step_outputs: dict[str, str] = Field(default_factory=dict)  # step id -> output, in execution order

    def render(self) -> str:
        """Assemble the context block handed to the next step's prompt."""
        text = f"Original Input (Snippet):\n{self.original_input[:ORIGINAL_INPUT_LIMIT]}\n\n"
        if self.step_outputs:
            text += "--- Data from Previous Steps ---\n"
            for index, output in enumerate(self.step_outputs.values(), 1):
                text += f"Step {index} Output:\n{(output or '')[:STEP_OUTPUT_LIMIT]}\n\n"
        return text


class RunResult(BaseModel):
    workflow_name: str
    steps: list[Step]
    succeeded: bool
    failed_step_id: str | None = None
    seen_companies: list[str] = Field(default_factory=list)
