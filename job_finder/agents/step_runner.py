import logging

from langchain_google_genai import ChatGoogleGenerativeAI

from job_finder.config import EXECUTOR_TEMPERATURE, GEMINI_MODEL, GROUND_ALL_STEPS, require_google_api_key
from job_finder.errors import ExecutionError
from job_finder.prompts import ACTION_INSTRUCTIONS, EXECUTOR_PROMPT
from job_finder.schemas import ActionKind, ExecutionContext, Source, Step, StepOutput

logger = logging.getLogger(__name__)

GOOGLE_SEARCH_TOOL = {"google_search": {}}

_llm: ChatGoogleGenerativeAI | None = None


def get_llm() -> ChatGoogleGenerativeAI:
    global _llm
    if _llm is None:
        _llm = ChatGoogleGenerativeAI(
            model=GEMINI_MODEL,
            google_api_key=require_google_api_key(),
            temperature=EXECUTOR_TEMPERATURE,
        )
    return _llm


def build_step_prompt(step: Step, context: ExecutionContext) -> str:
    return EXECUTOR_PROMPT.format(
        title=step.title,
        description=step.description,
        action_type=step.action_kind.value,
        instruction=ACTION_INSTRUCTIONS.get(step.action_kind, ""),
        context=context.render(),
    )


def uses_grounding(step: Step) -> bool:
    return step.action_kind == ActionKind.SEARCH or GROUND_ALL_STEPS


def _message_text(message) -> str:
    content = getattr(message, "content", "")
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def extract_sources(message) -> list[Source]:
    """Read cited web sources from a grounded response, keeping only complete entries."""
    metadata = getattr(message, "response_metadata", None) or {}
    grounding = metadata.get("grounding_metadata") or metadata.get("groundingMetadata") or {}
    chunks = grounding.get("grounding_chunks") or grounding.get("groundingChunks") or []
    sources = []
    for chunk in chunks:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if web and web.get("uri") and web.get("title"):
            sources.append(Source(title=web["title"], uri=web["uri"]))
    return sources


def execute_step(step: Step, context: ExecutionContext, llm=None) -> StepOutput:
    """Run one step against the model, grounded with Google Search where enabled."""
    llm = llm or get_llm()
    prompt = build_step_prompt(step, context)
    runnable = llm.bind_tools([GOOGLE_SEARCH_TOOL]) if uses_grounding(step) else llm

    try:
        response = runnable.invoke(prompt)
    except Exception as e:
        logger.error(f"Error executing step {step.id}: {e}")
        message = str(e) or "Unknown error occurred"
        if "400" in message:
            message += " (Bad Request - possibly invalid tool usage)"
        raise ExecutionError(message) from e

    text = _message_text(response)
    if not text.strip():
        raise ExecutionError("Model returned no output. It might have failed to use the search tool.")

    sources = extract_sources(response)
    logger.debug(f"Step {step.id} returned {len(text)} chars and {len(sources)} sources")
    return StepOutput(output=text, sources=sources or None)
