"""Evaluations: documentation cross-reference checks."""

from reactive_lookup.evaluations.anchor_eval import collect_anchors, collect_references, evaluate_anchors

__all__ = ["collect_anchors", "collect_references", "evaluate_anchors"]
