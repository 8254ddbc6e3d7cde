"""Streamlit UI helpers for the GitHub user card and the docs check panel."""

from __future__ import annotations

from typing import Any

import streamlit as st

from reactive_lookup.domains.github.models import MIN_USERNAME_LENGTH, UNKNOWN_COUNT
from reactive_lookup.orchestration.cascade import LookupSnapshot
from reactive_lookup.utils.logger import get_logger

logger = get_logger()

AVATAR_WIDTH = 120


def repository_count_text(label: str) -> str:
    """Label shown next to the count; pluralized only for real numbers."""
    if label == UNKNOWN_COUNT or not label.isdigit():
        return "Repositories: unknown"
    n = int(label)
    return f"{n} public repositor{'y' if n == 1 else 'ies'}"


def render_activity(busy: bool, st=st) -> None:
    if busy:
        st.caption("⏳ Talking to GitHub…")
    else:
        st.caption("Idle")


def render_user_card(snapshot: LookupSnapshot, st=st) -> None:
    """Render name, repository count and avatar for the current lookup."""
    render_activity(snapshot.busy, st=st)

    if not snapshot.username:
        st.info(f"Type a GitHub username (at least {MIN_USERNAME_LENGTH} characters).")
        return

    col_avatar, col_text = st.columns([1, 3])
    with col_avatar:
        if snapshot.has_avatar:
            st.image(snapshot.avatar, width=AVATAR_WIDTH)
        else:
            st.caption("No avatar")
    with col_text:
        if snapshot.display_name:
            st.markdown(f"### {snapshot.display_name}")
        else:
            st.markdown(f"### {snapshot.username}")
            st.caption("No matching GitHub user (yet).")
        st.markdown(repository_count_text(snapshot.repository_count))


def render_anchor_report(result: dict[str, Any], st=st) -> None:
    """Display the docs cross-reference evaluation."""
    passed = result.get("passed", False)
    score_pct = int(result.get("score", 0.0) * 100)
    status_icon = "✅" if passed else "❌"
    st.markdown(f"{status_icon} **Docs cross-references: {'PASS' if passed else 'FAIL'}** (Score: {score_pct}%)")
    st.markdown(f"   ├─ Anchors: {result.get('anchors', 0)}")
    st.markdown(f"   └─ References: {result.get('references', 0)}")
    issues = result.get("issues", [])
    if issues:
        st.markdown("**Issues found:**")
        for issue in issues[:5]:
            st.markdown(f"   └─ {issue}")
        if len(issues) > 5:
            st.caption(f"   ... and {len(issues) - 5} more issues")
