import logging
from dataclasses import asdict

import pandas as pd
import streamlit as st

# Must be first Streamlit call
st.set_page_config(page_title="Data Maturity Assessment", layout="centered")

# ----------------------------
# Imports (assessment)
# ----------------------------
from assessment.content import MAX_SCORE, SECTIONS, all_questions
from assessment.narrative import build_report
from assessment.pdf_report import render_report
from assessment.persistence import (
    DatabaseConfig,
    PersistenceClient,
    PersistenceError,
    SubmissionError,
    submit_result,
)
from assessment.scoring import ENGINE_VERSION, score_assessment
from assessment.settings import ConfigurationError, get_settings

log = logging.getLogger("assessment.app")

SETTINGS = get_settings()
QUESTIONS = all_questions(SECTIONS)

COLOR_BRAND = "#592C89"
COLOR_PROGRESS = "#D100D1"

# ----------------------------
# Session state
# ----------------------------
if "email" not in st.session_state:
    st.session_state.email = ""
if "index" not in st.session_state:
    st.session_state.index = 0
if "answers" not in st.session_state:
    st.session_state.answers = {}
if "bundle" not in st.session_state:
    st.session_state.bundle = None
if "submit_status" not in st.session_state:
    st.session_state.submit_status = None

# ----------------------------
# Styling
# ----------------------------
st.markdown(
    f"""
<style>
.block-container {{ padding-top: 2.5rem; max-width: 720px; }}
h1, h2, h3 {{ color: {COLOR_BRAND}; letter-spacing: -0.02em; }}
div[data-testid="stProgress"] > div > div > div > div {{ background-color: {COLOR_PROGRESS}; }}
div.stButton > button {{
  width: 100%;
  text-align: left;
  padding: 0.8rem 1rem;
  border-radius: 12px;
}}
</style>
""",
    unsafe_allow_html=True,
)


# ----------------------------
# Helpers
# ----------------------------
def badge(text: str, tone: str = "neutral"):
    tones = {
        "neutral": ("#111827", "#E5E7EB"),
        "good": ("#065F46", "#D1FAE5"),
        "warn": ("#92400E", "#FEF3C7"),
        "info": ("#1E3A8A", "#DBEAFE"),
    }
    fg, bg = tones.get(tone, tones["neutral"])
    st.markdown(
        f"""
        <span style="
            display:inline-block;
            padding:0.25rem 0.55rem;
            border-radius:999px;
            font-size:0.80rem;
            font-weight:600;
            color:{fg};
            background:{bg};
        ">{text}</span>
        """,
        unsafe_allow_html=True,
    )


def debug_enabled() -> bool:
    return "debug" in st.query_params


@st.cache_resource
def get_persistence() -> PersistenceClient:
    return PersistenceClient(DatabaseConfig.from_settings(SETTINGS)).open()


def save_result(email: str, bundle) -> None:
    # results and the PDF stay available whatever happens here
    try:
        rows = submit_result(get_persistence(), email, bundle)
        st.session_state.submit_status = ("ok", f"Saved ({rows} row).")
    except (ConfigurationError, PersistenceError, SubmissionError) as e:
        log.error("Result submission failed for %s: %s", email, e)
        st.session_state.submit_status = ("error", "We could not save your result, but you can still download your report.")


def restart():
    st.session_state.index = 0
    st.session_state.answers = {}
    st.session_state.bundle = None
    st.session_state.submit_status = None


def on_answer(question_id: str, value: int):
    st.session_state.answers = {**st.session_state.answers, question_id: value}
    next_index = st.session_state.index + 1
    if next_index >= len(QUESTIONS):
        bundle = score_assessment(dict(st.session_state.answers), SECTIONS)
        st.session_state.bundle = bundle
        save_result(st.session_state.email, bundle)
    else:
        st.session_state.index = next_index


# ----------------------------
# Pages
# ----------------------------
def page_intro():
    st.title("How mature is your data?")
    st.write(
        f"Answer {len(QUESTIONS)} short questions across {len(SECTIONS)} areas. "
        "You will get your maturity stage and a PDF report with next steps."
    )
    with st.form("email_gate"):
        email = st.text_input("Work e-mail", value=st.session_state.email)
        started = st.form_submit_button("Start")
    if started:
        if not email.strip() or "@" not in email:
            st.warning("Please enter a valid e-mail address to continue.")
            return
        st.session_state.email = email.strip()
        st.rerun()


def page_question():
    index = st.session_state.index
    section, question = QUESTIONS[index]

    st.progress(index / len(QUESTIONS))
    st.caption(f"Question {index + 1} of {len(QUESTIONS)} · {section.title}")
    st.header(question.prompt)
    if question.description:
        st.write(question.description)

    for i, a in enumerate(question.answers):
        st.button(
            a.label,
            key=f"ans_{question.id}_{i}",
            on_click=on_answer,
            args=(question.id, a.value),
        )


def render_breakdown(report):
    st.markdown("---")
    st.markdown("**Debug (not visible to users)**")
    df = pd.DataFrame([asdict(row) for row in report.breakdown])
    st.dataframe(df, use_container_width=True, hide_index=True)
    st.write(f"Overall 0..15: **{report.overall.score:.2f}** | Stage: **{report.overall.stage}**")


def page_results():
    bundle = st.session_state.bundle
    report = build_report(bundle, include_breakdown=debug_enabled(), sections=SECTIONS)
    overall = report.overall

    st.title(f"Stage {overall.stage}: {overall.stage_name}")
    st.write(f"Overall score: **{overall.score:.2f}** / {MAX_SCORE:.0f}")
    st.write(overall.recommendation)

    status = st.session_state.submit_status
    if status and status[0] == "error":
        st.warning(status[1])
    elif status:
        st.caption(status[1])

    st.subheader("By area")
    cols = st.columns(len(report.sections))
    for col, block in zip(cols, report.sections):
        with col:
            st.metric(block.title, f"{block.score:.1f}", f"Stage {block.stage}", delta_color="off")

    if report.focus_areas:
        st.caption("Focus areas: " + ", ".join(report.focus_areas))

    pdf = render_report(report, SETTINGS.report_assets_dir)
    st.download_button(
        "Download PDF report",
        data=pdf,
        file_name="Data Maturity Results.pdf",
        mime="application/pdf",
    )

    if debug_enabled():
        render_breakdown(report)
        badge(f"Engine {ENGINE_VERSION}", "info")

    st.button("Restart", on_click=restart)


def main():
    if not st.session_state.email:
        page_intro()
    elif st.session_state.bundle is None:
        page_question()
    else:
        page_results()


main()
