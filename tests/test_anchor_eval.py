"""
Tests for the AsciiDoc anchor/cross-reference evaluation.
"""

from __future__ import annotations

from pathlib import Path

from reactive_lookup.evaluations import collect_anchors, collect_references, evaluate_anchors
from reactive_lookup.evaluations.anchor_eval import main

DOCS = Path(__file__).resolve().parent.parent / "docs"


def _write(root: Path, name: str, text: str) -> Path:
    p = root / name
    p.write_text(text, encoding="utf-8")
    return p


def test_collect_anchors_all_forms() -> None:
    text = "\n".join([
        "[[intro]]",
        "== Intro",
        "[[setup,Setup section]]",
        "[#usage.lead]",
        "Inline anchor:inline-point[] here.",
    ])
    assert collect_anchors(text) == ["intro", "setup", "usage", "inline-point"]


def test_collect_references_forms() -> None:
    text = "See <<intro>>, <<setup,the setup>>, <<other.adoc#deep,deep>> and xref:other.adoc[] or xref:usage[Usage]."
    assert collect_references(text) == [
        (None, "intro"),
        (None, "setup"),
        ("other.adoc", "deep"),
        ("other.adoc", ""),
        (None, "usage"),
    ]


def test_markup_inside_code_blocks_and_comments_is_ignored() -> None:
    text = "\n".join([
        "[[real]]",
        "----",
        "[[not-an-anchor]]",
        "<<not-a-ref>>",
        "----",
        "// <<commented-out>>",
        "<<real>>",
    ])
    assert collect_anchors(text) == ["real"]
    assert collect_references(text) == [(None, "real")]


def test_all_references_resolve(tmp_path) -> None:
    _write(tmp_path, "a.adoc", "[[top]]\n== A\nSee <<b.adoc#detail,detail>> and <<top>>.\n")
    _write(tmp_path, "b.adoc", "[[detail]]\n== B\nBack to xref:a.adoc#top[A], also <<top>>.\n")

    result = evaluate_anchors([tmp_path])

    assert result["passed"] is True
    assert result["score"] == 1.0
    assert result["anchors"] == 2
    assert result["references"] == 4
    assert result["details"]["files"] == 2
    assert result["issues"] == []


def test_dangling_and_missing_file(tmp_path) -> None:
    _write(tmp_path, "a.adoc", "[[top]]\n<<top>> <<nowhere>> <<ghost.adoc#x>>\n")

    result = evaluate_anchors([tmp_path])

    assert result["passed"] is False
    assert result["score"] == 0.33
    assert any("nowhere" in i for i in result["issues"])
    assert any("ghost.adoc" in i for i in result["issues"])
    assert len(result["details"]["dangling"]) == 2


def test_duplicate_anchors_reported(tmp_path) -> None:
    _write(tmp_path, "a.adoc", "[[dup]]\n[[dup]]\n[[shared]]\n")
    _write(tmp_path, "b.adoc", "[[shared]]\n")

    result = evaluate_anchors([tmp_path])

    assert result["passed"] is False
    assert result["score"] == 1.0
    assert any("defined more than once" in i for i in result["issues"])
    assert any("several files" in i for i in result["issues"])


def test_no_files_passes(tmp_path) -> None:
    result = evaluate_anchors([tmp_path])
    assert result["passed"] is True
    assert result["score"] == 1.0
    assert result["details"]["files"] == 0


def test_project_docs_are_consistent() -> None:
    result = evaluate_anchors([DOCS])
    assert result["issues"] == []
    assert result["passed"] is True
    assert result["references"] > 0


def test_main_exit_codes(tmp_path, capsys) -> None:
    _write(tmp_path, "ok.adoc", "[[x]]\n<<x>>\n")
    assert main([str(tmp_path)]) == 0
    assert "PASS" in capsys.readouterr().out

    _write(tmp_path, "bad.adoc", "<<y>>\n")
    assert main([str(tmp_path)]) == 1
    out = capsys.readouterr().out
    assert "[X]" in out
    assert "FAIL" in out
