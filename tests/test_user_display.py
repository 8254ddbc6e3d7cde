"""
Tests for the Streamlit render helpers. Streamlit is replaced by a MagicMock.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from reactive_lookup.orchestration.cascade import LookupSnapshot
from reactive_lookup.ui.user_display import (
    AVATAR_WIDTH,
    render_activity,
    render_anchor_report,
    render_user_card,
    repository_count_text,
)


def _st() -> MagicMock:
    st = MagicMock()
    st.columns.return_value = [MagicMock(), MagicMock()]
    return st


def _markdown_text(st: MagicMock) -> str:
    return "\n".join(str(c.args[0]) for c in st.markdown.call_args_list)


@pytest.mark.parametrize(
    "label,expected",
    [
        ("unknown", "Repositories: unknown"),
        ("", "Repositories: unknown"),
        ("n/a", "Repositories: unknown"),
        ("0", "0 public repositories"),
        ("1", "1 public repository"),
        ("8", "8 public repositories"),
    ],
)
def test_repository_count_text(label: str, expected: str) -> None:
    assert repository_count_text(label) == expected


def test_render_activity() -> None:
    st = _st()
    render_activity(True, st=st)
    render_activity(False, st=st)
    captions = [c.args[0] for c in st.caption.call_args_list]
    assert "Talking to GitHub" in captions[0]
    assert captions[1] == "Idle"


def test_empty_username_shows_prompt_only() -> None:
    st = _st()
    render_user_card(LookupSnapshot(), st=st)
    st.info.assert_called_once()
    st.columns.assert_not_called()
    st.image.assert_not_called()


def test_card_with_user_and_avatar() -> None:
    st = _st()
    snap = LookupSnapshot(
        username="octocat",
        display_name="The Octocat",
        repository_count="8",
        avatar=b"\x89PNG",
    )
    render_user_card(snap, st=st)

    st.image.assert_called_once_with(b"\x89PNG", width=AVATAR_WIDTH)
    text = _markdown_text(st)
    assert "### The Octocat" in text
    assert "8 public repositories" in text


def test_card_without_match_shows_placeholder_and_unknown() -> None:
    st = _st()
    snap = LookupSnapshot(username="nobody-here", busy=True)
    render_user_card(snap, st=st)

    st.image.assert_not_called()
    captions = [c.args[0] for c in st.caption.call_args_list]
    assert "No avatar" in captions
    assert any("No matching GitHub user" in c for c in captions)
    text = _markdown_text(st)
    assert "### nobody-here" in text
    assert "Repositories: unknown" in text


def test_render_anchor_report_lists_issues() -> None:
    st = _st()
    result = {
        "passed": False,
        "score": 0.5,
        "anchors": 3,
        "references": 2,
        "issues": [f"issue {i}" for i in range(7)],
    }
    render_anchor_report(result, st=st)
    text = _markdown_text(st)
    assert "FAIL" in text
    assert "50%" in text
    assert "issue 4" in text
    assert "issue 5" not in text
    st.caption.assert_called_once()
    assert "2 more" in st.caption.call_args.args[0]


def test_render_anchor_report_pass() -> None:
    st = _st()
    render_anchor_report({"passed": True, "score": 1.0, "anchors": 4, "references": 4, "issues": []}, st=st)
    assert "PASS" in _markdown_text(st)
    st.caption.assert_not_called()
