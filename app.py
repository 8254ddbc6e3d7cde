"""
GitHub user lookup: Streamlit UI entry point.

Typing a username feeds the cascade; workers post their results to a
QueueDispatcher that this script drains before rendering, so session state
only changes on the Streamlit script thread.
"""

import streamlit as st

# Load .env first so GITHUB_TOKEN / RETRY_* changes are picked up on restart
from reactive_lookup.utils.config import load_config, github_token, log_level, project_root
load_config()

from reactive_lookup.evaluations.anchor_eval import evaluate_anchors
from reactive_lookup.orchestration.cascade import UserLookupCascade
from reactive_lookup.services.pipeline.dispatch import QueueDispatcher
from reactive_lookup.ui.user_display import render_anchor_report, render_user_card
from reactive_lookup.utils.logger import get_logger, setup_logger

setup_logger(level=log_level())
log = get_logger()

LOOKUP_TIMEOUT_SECONDS = 30.0

st.set_page_config(page_title="GitHub user lookup", layout="centered")
st.title("GitHub user lookup")

if "lookup" not in st.session_state:
    st.session_state.lookup = UserLookupCascade(dispatcher=QueueDispatcher())
if "docs_report" not in st.session_state:
    st.session_state.docs_report = None

lookup: UserLookupCascade = st.session_state.lookup

with st.sidebar:
    st.header("Settings")
    st.caption("GitHub token: " + ("set" if github_token() else "anonymous (60 requests/hour)"))
    policy = lookup.client.policy
    lo, hi = policy.jitter
    st.caption(f"Retries: {policy.max_retries} · delay {lo:g}–{hi:g}s before each attempt")
    if st.button("Clear", use_container_width=True):
        lookup.set_username("")
        lookup.wait_idle(timeout=LOOKUP_TIMEOUT_SECONDS)
        st.session_state.username = ""
        st.rerun()

    with st.expander("Docs cross-references"):
        if st.button("Check docs", key="check_docs", use_container_width=True):
            st.session_state.docs_report = evaluate_anchors([project_root() / "docs"])
        if st.session_state.docs_report:
            render_anchor_report(st.session_state.docs_report)

username = st.text_input("GitHub username", key="username", placeholder="e.g. octocat")
if lookup.set_username(username):
    log.info("Username changed to %r", username)

with st.spinner("Looking up…"):
    finished = lookup.wait_idle(timeout=LOOKUP_TIMEOUT_SECONDS)
if not finished:
    st.warning("GitHub is slow to answer; the card updates on your next interaction.")

render_user_card(lookup.snapshot())
