from pydantic import BaseModel

from job_finder.ledger import DEFAULT_EXCLUSION_SAMPLE, DedupLedger
from job_finder.schemas import ActionKind

PLANNER_SYSTEM_PROMPT = "You are a helpful assistant that structures requests into linear workflows."

PLANNER_PROMPT = """\
You are an expert Automation Architect.
Goal: "{goal}"
Initial Data Sample: "{sample}..."

Create a logical, step-by-step workflow to achieve this goal.

Supported Action Types:
- 'search': ESSENTIAL for finding live jobs.
- 'analysis': Analyzing keywords or data.
- 'generation': Writing content (emails, cover letters).
- 'extraction': Pulling specific fields.

Rules:
1. Step 1 MUST be 'search' to find DIRECT APPLICATION LINKS (ATS, Career Pages, Forms) in the target location.
2. Step 2 MUST be 'analysis' to extract ATS Keywords from those findings.
3. Step 3 MUST be 'generation' to write a tailored Cover Letter for these roles.
4. Ensure instructions are specific and high-quality.
"""

SEARCH_INSTRUCTION = """\
CRITICAL INSTRUCTION - "DIRECT LINK HUNTER" - ACTIVE JOBS ONLY:
The user wants DIRECT APPLICATION LINKS for CURRENTLY OPEN jobs.

1. STATUS CHECK:
   - EXCLUDE any result that says: "Closed", "Expired", "No longer accepting", "Filled", "404".
   - ONLY return links that appear valid and active.
   - TIME WINDOW: LAST 3 DAYS ONLY.

2. STRICT SEARCH QUERIES (use the 'site:' operator to find direct portals):
   - Google Forms: site:docs.google.com/forms "resume" "apply"
   - Greenhouse: site:boards.greenhouse.io
   - Lever: site:jobs.lever.co
   - Ashby: site:jobs.ashbyhq.com
   - BambooHR: site:bamboohr.com/jobs
   - Workday: site:myworkdayjobs.com
   - Company Career Pages: "apply now" (site:.in/careers OR site:.com/careers OR site:.io/careers)

3. LOCATION & ROLE: use the target location and role from the context data.

4. BANNED DOMAINS (DO NOT RETURN THESE):
   naukri.com, indeed.com, linkedin.com, glassdoor.com, foundit.in, instahyre.com, ambitionbox.com

5. OUTPUT FORMAT:
   - List exactly 20 items if found.
   - Format: "1. [Role] at [Company] - [Source Platform] - [Direct Link]"
   - Example: "1. Frontend Dev at Swiggy - Greenhouse - https://boards.greenhouse.io/swiggy/jobs/12345"
"""

ANALYSIS_INSTRUCTION = """\
Based on the list of DIRECT LINKS found, EXTRACT the top 15 "Hard Skills" and "Keywords".
Output them as a comma-separated list for use in a Resume.
"""

GENERATION_INSTRUCTION = """\
Write a "Universal Cover Letter" that works for the jobs found above.
- Context: applying to Startups/MNCs via Direct Links.
- Mention the specific job title from the original input and the top keywords found.
- Keep it professional, persuasive, and optimized for ATS.
"""

ACTION_INSTRUCTIONS = {
    ActionKind.SEARCH: SEARCH_INSTRUCTION,
    ActionKind.ANALYSIS: ANALYSIS_INSTRUCTION,
    ActionKind.GENERATION: GENERATION_INSTRUCTION,
}

EXECUTOR_PROMPT = """\
You are an Automation Executor Engine.

CURRENT TASK:
Title: {title}
Instruction: {description}
Action Type: {action_type}

{instruction}

CONTEXT DATA:
{context}

EXECUTION:
Perform the "CURRENT TASK" using the "CONTEXT DATA".
If this is a search task, use the google_search tool to find real links.
If this is a generation task, output the generated content directly.
"""


class SearchRequest(BaseModel):
    goal: str
    sample_input: str
    original_input: str
    workflow_name: str


def build_search_request(job_type: str, location: str, ledger: DedupLedger) -> SearchRequest:
    """Turn the job form into the planner goal, its sample input and the run's original input."""
    job_type = (job_type or "").strip()
    location = (location or "").strip()
    if not job_type or not location:
        raise ValueError("Please enter a Job Type and Location.")

    recent_history = ", ".join(ledger.recent_sample(DEFAULT_EXCLUSION_SAMPLE))

    goal = f"""\
ACT AS A "DIRECT JOB LINK" SPECIALIST NAMED "JOB FINDER".

OBJECTIVES:
1. SEARCH: Find 20 DIRECT APPLICATION LINKS for "{job_type}".
   - TARGET DOMAINS: boards.greenhouse.io, jobs.lever.co, jobs.ashbyhq.com, docs.google.com/forms, myworkdayjobs.com, bamboohr.com, Company Career Pages.
   - LOCATION: {location} (Startups, MNCs, FAANG).
   - TIME: LAST 3 DAYS ONLY.
   - EXCLUDE: [{recent_history}].
2. ANALYZE: Extract keywords.
3. WRITE: Generate a Cover Letter.

REPORT RULES:
- DO NOT show jobs that are CLOSED or EXPIRED.
- STRICTLY BAN: Naukri, Indeed, LinkedIn, Glassdoor.
- Only links where the resume can be uploaded immediately (ATS or Career Page).
"""

    sample_input = f"""\
--- SEARCH CRITERIA ---
Location: {location}
Job Keywords: {job_type}
Mode: AGGRESSIVE DIRECT SEARCH
Allowed Hosts: Greenhouse, Lever, Ashby, BambooHR, Workday, Google Forms, Company Career Pages
Banned Hosts: Naukri.com, Indeed.com, LinkedIn.com, Glassdoor.com
Freshness: POSTED WITHIN LAST 3 DAYS
Status: ACTIVE JOBS ONLY (Filter out Closed/Filled)
Volume: 20+ ITEMS
"""

    original_input = f"""\
Target Location: {location}
Job Type: {job_type}
Requirement: DIRECT LINKS ONLY (Greenhouse, Lever, Forms, Career Pages). NO CLOSED JOBS. LAST 3 DAYS.
"""

    return SearchRequest(
        goal=goal,
        sample_input=sample_input,
        original_input=original_input,
        workflow_name=f"Job Scout: {job_type}",
    )
