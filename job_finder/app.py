import json
import logging

import requests
import streamlit as st

from job_finder.config import API_BASE, LOG_LEVEL
from job_finder.report import render_markdown_report, report_filename
from job_finder.schemas import Step, StepStatus

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

STATUS_ICONS = {
    StepStatus.PENDING: "⏳",
    StepStatus.RUNNING: "🔄",
    StepStatus.COMPLETED: "✅",
    StepStatus.ERROR: "❌",
}

st.set_page_config(page_title="Job Finder", page_icon="💼", layout="wide")
st.title("Job Finder")
st.markdown("Finds direct application links, extracts ATS keywords and drafts a cover letter.")

if "planned" not in st.session_state:
    st.session_state.planned = None
if "steps" not in st.session_state:
    st.session_state.steps = []


def render_steps(container, steps: list[Step]) -> None:
    with container.container():
        for i, step in enumerate(steps, 1):
            icon = STATUS_ICONS[step.status]
            st.markdown(f"{icon} **Step {i}** — `{step.action_kind.value}` — {step.title}")
            st.caption(step.description)
            if step.error:
                st.error(step.error)
            elif step.output:
                with st.expander("Output", expanded=step.status == StepStatus.COMPLETED and i == len(steps)):
                    st.markdown(step.output)
                    if step.sources:
                        st.markdown("**Direct links found:**")
                        for source in step.sources:
                            st.markdown(f"- [{source.title}]({source.uri})")


def fetch_history() -> list[str]:
    try:
        resp = requests.get(f"{API_BASE}/history", timeout=10)
        resp.raise_for_status()
        return resp.json()["entries"]
    except requests.exceptions.RequestException as e:
        logger.warning(f"Failed to load history: {e}")
        return []


col_form, col_flow = st.columns([1, 2])

with col_form:
    location = st.text_input("Location", value="India", placeholder="e.g. Bangalore, Remote India")
    job_type = st.text_input("Job Type / Keywords", placeholder="e.g. React Developer, Data Analyst")

    history = fetch_history()
    hist_col, reset_col = st.columns([2, 1])
    hist_col.metric("Seen / Ignored", f"{len(history)} jobs")
    if reset_col.button("Reset"):
        try:
            requests.delete(f"{API_BASE}/history", timeout=10).raise_for_status()
            st.success("Search history cleared.")
        except requests.exceptions.RequestException as e:
            st.error(f"Error: {e}")

    plan_clicked = st.button("Find Active Direct Jobs", type="primary", disabled=not (job_type.strip() and location.strip()))

if plan_clicked:
    with st.spinner("Planning..."):
        try:
            resp = requests.post(f"{API_BASE}/plan", json={"job_type": job_type, "location": location}, timeout=120)
            resp.raise_for_status()
            st.session_state.planned = resp.json()
            st.session_state.steps = [Step.model_validate(s) for s in st.session_state.planned["plan"]["steps"]]
        except requests.exceptions.ConnectionError:
            st.error("Cannot connect to API. Make sure the FastAPI server is running on port 8000.")
        except Exception as e:
            st.error(f"Failed to plan automation: {e}")

with col_flow:
    planned = st.session_state.planned
    if not planned:
        st.info("1. Enter a job type  2. Confirm the location  3. Plan and execute the search.")
    else:
        st.subheader(planned["plan"]["name"])
        st.caption(f"{len(st.session_state.steps)} steps: Search -> Analyze -> Write")
        run_clicked = st.button("Execute")
        steps_area = st.empty()
        render_steps(steps_area, st.session_state.steps)

        if run_clicked:
            try:
                with requests.post(
                    f"{API_BASE}/execute/stream",
                    json={"plan": planned["plan"], "original_input": planned["original_input"]},
                    stream=True,
                    timeout=600,
                ) as resp:
                    resp.raise_for_status()
                    for line in resp.iter_lines():
                        if not line:
                            continue
                        event = json.loads(line)
                        if event["event"] == "update":
                            st.session_state.steps = [Step.model_validate(s) for s in event["steps"]]
                            render_steps(steps_area, st.session_state.steps)
                        elif event["event"] == "result":
                            st.session_state.steps = [Step.model_validate(s) for s in event["result"]["steps"]]
                            render_steps(steps_area, st.session_state.steps)
                        elif event["event"] == "error":
                            st.error(event["detail"])
            except requests.exceptions.ConnectionError:
                st.error("Cannot connect to API. Make sure the FastAPI server is running on port 8000.")
            except requests.exceptions.HTTPError as e:
                st.error(f"Error: {e}")

        steps = st.session_state.steps
        if any(step.status == StepStatus.COMPLETED for step in steps):
            report = render_markdown_report(planned["plan"]["name"], job_type, location, steps)
            st.download_button("Download Report", data=report, file_name=report_filename(), mime="text/markdown")
