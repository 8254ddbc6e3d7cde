"""
Docs cross-reference evaluation: every AsciiDoc reference must land on an anchor.

Anchors:     [[id]]  [[id,label]]  [#id]  [#id.role]  anchor:id[]
References:  <<id>>  <<id,text>>  <<file.adoc#id,text>>  xref:file.adoc#id[text]  xref:id[text]

Listing/literal blocks and comment lines are skipped, so example markup inside
code samples is not reported.
"""

from __future__ import annotations

import argparse
import re
import sys
from pathlib import Path
from typing import Iterable

_ID = r"[A-Za-z_:][\w:\-.]*"

_ANCHOR_PATTERNS = [
    re.compile(r"\[\[(" + _ID + r")(?:,[^\]]*)?\]\]"),
    re.compile(r"^\[#([A-Za-z_:][\w:\-]*)[^\]]*\]\s*$"),
    re.compile(r"anchor:(" + _ID + r")\[[^\]]*\]"),
]
_XREF_ANGLE = re.compile(r"<<([^<>,\s]+)(?:,[^>]*)?>>")
_XREF_MACRO = re.compile(r"xref:([^\[\s]+)\[[^\]]*\]")
_BLOCK_DELIMITERS = ("----", "....", "////", "++++")


def _content_lines(text: str) -> list[str]:
    """Lines outside delimited listing/literal/comment/passthrough blocks."""
    out: list[str] = []
    open_delim: str | None = None
    for line in text.splitlines():
        stripped = line.strip()
        if open_delim is not None:
            if stripped == open_delim:
                open_delim = None
            continue
        if stripped in _BLOCK_DELIMITERS:
            open_delim = stripped
            continue
        if stripped.startswith("//"):
            continue
        out.append(line)
    return out


def collect_anchors(text: str) -> list[str]:
    """Anchor ids defined in text, in document order (duplicates kept)."""
    ids: list[str] = []
    for line in _content_lines(text):
        stripped = line.strip()
        for pat in _ANCHOR_PATTERNS:
            ids.extend(m.group(1) for m in pat.finditer(stripped))
    return ids


def _split_target(target: str) -> tuple[str | None, str]:
    if "#" in target:
        file_part, _, anchor = target.partition("#")
        return (file_part or None), anchor
    if target.endswith(".adoc"):
        return target, ""
    return None, target


def collect_references(text: str) -> list[tuple[str | None, str]]:
    """(file or None, anchor id) for every cross reference in text. Empty id means whole file."""
    refs: list[tuple[str | None, str]] = []
    for line in _content_lines(text):
        for m in _XREF_ANGLE.finditer(line):
            refs.append(_split_target(m.group(1)))
        for m in _XREF_MACRO.finditer(line):
            refs.append(_split_target(m.group(1)))
    return refs


def _expand(paths: Iterable[Path | str]) -> list[Path]:
    files: list[Path] = []
    for p in paths:
        p = Path(p)
        if p.is_dir():
            files.extend(sorted(p.rglob("*.adoc")))
        elif p.is_file():
            files.append(p)
    return files


def _resolve_file(source: Path, file_part: str) -> Path:
    target = file_part if file_part.endswith(".adoc") else f"{file_part}.adoc"
    return (source.parent / target).resolve()


def evaluate_anchors(paths: Iterable[Path | str]) -> dict:
    """
    Check cross references across a set of AsciiDoc files.

    Args:
        paths: Files and/or directories (searched recursively for *.adoc).

    Returns:
        Dict with passed (bool), score (resolved / total references, 1.0 when
        there are none), issues (list of str), anchors and references (counts),
        and details (files, duplicates, dangling).
    """
    files = _expand(paths)
    issues: list[str] = []
    by_file: dict[Path, set[str]] = {}
    owners: dict[str, list[Path]] = {}
    duplicates: list[str] = []
    texts: dict[Path, str] = {}

    for f in files:
        key = f.resolve()
        try:
            texts[key] = f.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            issues.append(f"{f}: unreadable ({e})")
            continue
        ids = collect_anchors(texts[key])
        seen: set[str] = set()
        for anchor_id in ids:
            if anchor_id in seen:
                duplicates.append(f"{f.name}#{anchor_id}")
                issues.append(f"{f.name}: anchor '{anchor_id}' defined more than once")
            seen.add(anchor_id)
            owners.setdefault(anchor_id, []).append(key)
        by_file[key] = seen

    for anchor_id, where in owners.items():
        distinct = sorted({p.name for p in where})
        if len(distinct) > 1:
            duplicates.append(anchor_id)
            issues.append(f"anchor '{anchor_id}' defined in several files: {', '.join(distinct)}")

    total = 0
    resolved = 0
    dangling: list[str] = []
    for key, text in texts.items():
        for file_part, anchor_id in collect_references(text):
            total += 1
            label = f"{file_part}#{anchor_id}" if file_part else anchor_id
            if file_part:
                target = _resolve_file(key, file_part)
                if target not in by_file:
                    dangling.append(f"{key.name} -> {label}")
                    issues.append(f"{key.name}: reference to missing file '{file_part}'")
                    continue
                ok = not anchor_id or anchor_id in by_file[target]
            else:
                ok = anchor_id in by_file.get(key, set()) or anchor_id in owners
            if ok:
                resolved += 1
            else:
                dangling.append(f"{key.name} -> {label}")
                issues.append(f"{key.name}: dangling reference '{label}'")

    score = resolved / total if total else 1.0
    return {
        "passed": not issues,
        "score": round(score, 2),
        "issues": issues,
        "anchors": sum(len(v) for v in by_file.values()),
        "references": total,
        "details": {
            "files": len(texts),
            "duplicates": duplicates,
            "dangling": dangling,
        },
    }


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Check AsciiDoc anchors and cross references")
    parser.add_argument("paths", nargs="*", default=["docs"], help="Files or directories (default: docs)")
    args = parser.parse_args(argv)

    result = evaluate_anchors(args.paths)
    for issue in result["issues"]:
        print(f"[X] {issue}")
    status = "PASS" if result["passed"] else "FAIL"
    print(
        f"{status}: {result['details']['files']} file(s), {result['anchors']} anchor(s), "
        f"{result['references']} reference(s), score {result['score']}"
    )
    return 0 if result["passed"] else 1


if __name__ == "__main__":
    sys.exit(main())
