"""Selection of the governing rate edge for a pair and date."""

from collections.abc import Iterable
from datetime import date

from src.domain.models import RateEdge, RateKind


def select_effective_edge(
    edges: Iterable[RateEdge],
    as_of: date,
    kinds: Iterable[RateKind] | None = None,
) -> RateEdge | None:
    """Return the edge that governs a pair as of a date.

    The latest ``effective_date`` not after ``as_of`` wins; on a shared date
    fetched edges beat manual edges, which beat derived edges.

    Args:
        edges: Candidate edges for a single (from, to) pair.
        as_of: Lookup date.
        kinds: Optional restriction on the edge kinds considered.

    Returns:
        RateEdge | None: The governing edge, or None when nothing qualifies.
    """
    allowed = set(kinds) if kinds is not None else None
    best: RateEdge | None = None
    for edge in edges:
        if edge.effective_date > as_of:
            continue
        if allowed is not None and edge.kind not in allowed:
            continue
        if best is None or _sort_key(edge) < _sort_key(best):
            best = edge
    return best


def latest_edges_by_pair(
    edges: Iterable[RateEdge],
    as_of: date,
) -> dict[tuple[str, str], RateEdge]:
    """Group edges by pair and keep the governing edge of each pair."""
    grouped: dict[tuple[str, str], list[RateEdge]] = {}
    for edge in edges:
        grouped.setdefault(edge.pair, []).append(edge)
    selected = {}
    for pair, candidates in grouped.items():
        edge = select_effective_edge(candidates, as_of)
        if edge is not None:
            selected[pair] = edge
    return selected


def _sort_key(edge: RateEdge) -> tuple[int, int, str]:
    # Later dates sort first, then kind precedence, then id for stability.
    return (-edge.effective_date.toordinal(), edge.kind.precedence, edge.id)


__all__ = ["select_effective_edge", "latest_edges_by_pair"]
