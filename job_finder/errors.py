class JobFinderError(Exception):
    """Base class for failures surfaced by the job finder workflow."""


class PlanningError(JobFinderError):
    """The planner could not produce a usable plan."""


class ExecutionError(JobFinderError):
    """A step could not be executed or produced no usable output."""
