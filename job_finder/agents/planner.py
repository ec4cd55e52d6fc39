import logging

from langchain_google_genai import ChatGoogleGenerativeAI

from job_finder.config import GEMINI_MODEL, PLANNER_TEMPERATURE, require_google_api_key
from job_finder.errors import PlanningError
from job_finder.prompts import PLANNER_PROMPT, PLANNER_SYSTEM_PROMPT
from job_finder.schemas import Plan, PlanResponse, materialize_plan

logger = logging.getLogger(__name__)

SAMPLE_INPUT_LIMIT = 500

_structured_llm = None


def get_structured_llm():
    global _structured_llm
    if _structured_llm is None:
        llm = ChatGoogleGenerativeAI(
            model=GEMINI_MODEL,
            google_api_key=require_google_api_key(),
            temperature=PLANNER_TEMPERATURE,
        )
        _structured_llm = llm.with_structured_output(PlanResponse)
    return _structured_llm


def create_plan(goal: str, sample_input: str, name: str | None = None, llm=None) -> Plan:
    """Ask the planner model for an ordered workflow and materialize it into pending steps."""
    llm = llm or get_structured_llm()
    prompt = PLANNER_PROMPT.format(goal=goal.strip(), sample=sample_input[:SAMPLE_INPUT_LIMIT])
    try:
        response = llm.invoke(
            [
                {"role": "system", "content": PLANNER_SYSTEM_PROMPT},
                {"role": "human", "content": prompt},
            ]
        )
    except Exception as e:
        logger.error(f"Error planning workflow: {e}")
        raise PlanningError(f"Failed to plan automation: {e}") from e

    if isinstance(response, dict):
        try:
            response = PlanResponse.model_validate(response)
        except ValueError as e:
            raise PlanningError(f"Planner returned a malformed plan: {e}") from e
    if not isinstance(response, PlanResponse):
        raise PlanningError("Planner returned no plan.")
    if not response.steps:
        raise PlanningError("Planner returned a plan with no steps.")

    plan = materialize_plan(response, name=name)
    logger.info(f"Planned '{plan.name}' with {len(plan.steps)} steps")
    return plan
