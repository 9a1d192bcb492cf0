"""Rename detection heuristics for the schema diff.

A rename is only ever a guess, so matching is deliberately conservative:

  1. Structural filter: the caller decides which added names could plausibly
     replace a removed one (same field shape, superset of fields, ...).
  2. A single structural candidate is accepted as is.
  3. Several candidates are ranked by name similarity; the best one wins only
     if it is similar enough and clearly ahead of the runner-up.
  4. Matching is one-to-one. An added name claimed by two removed names is
     given to neither.

Anything ambiguous falls back to independent add + remove operations.
"""

import re
from difflib import SequenceMatcher
from typing import Callable, Iterable

# Best candidate must reach this similarity when several are structurally possible
MIN_SIMILARITY = 0.5

# ...and must beat the runner-up by at least this much
AMBIGUITY_MARGIN = 0.1

_SEPARATORS = re.compile(r"[\s_\-]+")


def normalize_name(name: str) -> str:
    """Lower-case a name and drop separators so 'In Progress' == 'in_progress'."""
    return _SEPARATORS.sub("", name).lower()


def name_similarity(a: str, b: str) -> float:
    """Similarity of two names in [0, 1], 1.0 when equal after normalization."""
    norm_a, norm_b = normalize_name(a), normalize_name(b)
    if norm_a == norm_b:
        return 1.0
    if not norm_a or not norm_b:
        return 0.0
    return SequenceMatcher(None, norm_a, norm_b).ratio()


def _pick_candidate(old: str, candidates: list[str]) -> str | None:
    if len(candidates) == 1:
        return candidates[0]

    ranked = sorted(
        ((name_similarity(old, new), new) for new in candidates),
        key=lambda item: item[0],
        reverse=True,
    )
    best_score, best = ranked[0]
    runner_up = ranked[1][0]
    if best_score >= MIN_SIMILARITY and best_score - runner_up >= AMBIGUITY_MARGIN:
        return best
    return None


def match_renames(
    removed: Iterable[str],
    added: Iterable[str],
    is_candidate: Callable[[str, str], bool],
) -> dict[str, str]:
    """Pair removed names with added names that likely replace them.

    Args:
        removed: Names present only in the old schema, in a stable order.
        added: Names present only in the new schema.
        is_candidate: Structural check deciding whether old -> new is plausible.

    Returns:
        Mapping of old name to new name for unambiguous renames only.
    """
    added = list(added)
    proposals: dict[str, str] = {}

    for old in removed:
        candidates = [new for new in added if is_candidate(old, new)]
        if not candidates:
            continue
        choice = _pick_candidate(old, candidates)
        if choice is not None:
            proposals[old] = choice

    # Enforce one-to-one: drop every claim on a contested target
    claims: dict[str, int] = {}
    for new in proposals.values():
        claims[new] = claims.get(new, 0) + 1

    return {old: new for old, new in proposals.items() if claims[new] == 1}
