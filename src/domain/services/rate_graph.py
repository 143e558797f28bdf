"""Closure computation over a user's authoritative rate graph.

Given the authoritative edges effective on a date, the closure adds:

* the reverse of every authoritative edge whose reverse pair has no
  authoritative edge of its own;
* for every remaining ordered pair of active currencies, the product of the
  rates along a shortest path (fewest hops) through authoritative and reverse
  edges.

Shortest-path ties resolve to the lexicographically smallest sequence of
currency codes: neighbours are explored in sorted order and every node keeps
the first parent that reached it.
"""

from collections import deque
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, localcontext

from src.domain.constants import (
    DERIVED_RATE_ROUNDING,
    DERIVED_RATE_SIGNIFICANT_DIGITS,
    GRAPH_WORKING_PRECISION,
)
from src.domain.models import RateEdge
from src.domain.services.rate_selection import latest_edges_by_pair


@dataclass(frozen=True)
class DerivedRate:
    """Rate synthesized by the closure, not yet persisted.

    Attributes:
        from_currency: Source currency code.
        to_currency: Target currency code.
        rate: Rounded conversion factor.
        derived_from: Authoritative edge ids along the path, in path order.
        path: Currency codes visited, from source to target.
    """

    from_currency: str
    to_currency: str
    rate: Decimal
    derived_from: tuple[str, ...]
    path: tuple[str, ...]

    @property
    def pair(self) -> tuple[str, str]:
        return (self.from_currency, self.to_currency)

    @property
    def is_reverse(self) -> bool:
        """Return True when the rate inverts a single authoritative edge."""
        return len(self.path) == 2

    def describe(self) -> str:
        """Return a short human-readable note for the derived edge."""
        route = "->".join(self.path)
        if self.is_reverse:
            return f"Reverse of {self.path[1]}->{self.path[0]}"
        return f"Transitive via {route}"


@dataclass(frozen=True)
class ClosurePlan:
    """Derived rates and unresolved pairs computed for one date."""

    derived: list[DerivedRate]
    unresolved_pairs: list[tuple[str, str]]


@dataclass(frozen=True)
class _Hop:
    rate: Decimal
    source_edge_id: str


def compute_closure(
    authoritative_edges: Iterable[RateEdge],
    active_codes: Sequence[str],
    as_of: date,
) -> ClosurePlan:
    """Compute the derived rates completing a user's graph on a date.

    Args:
        authoritative_edges: Authoritative edges of the user; edges dated after
            ``as_of`` and derived edges are ignored.
        active_codes: Currency codes that must be mutually convertible.
        as_of: Effective date of the closure.

    Returns:
        ClosurePlan: Derived rates sorted by pair, and active pairs that have
        no path.
    """
    governing = latest_edges_by_pair(
        (edge for edge in authoritative_edges if edge.kind.is_authoritative),
        as_of,
    )

    with localcontext() as ctx:
        ctx.prec = GRAPH_WORKING_PRECISION
        hops: dict[tuple[str, str], _Hop] = {
            pair: _Hop(edge.rate, edge.id)
            for pair, edge in sorted(governing.items())
        }
        derived: dict[tuple[str, str], DerivedRate] = {}

        for (from_code, to_code), edge in sorted(governing.items()):
            reverse_pair = (to_code, from_code)
            if reverse_pair in governing:
                continue
            inverse = Decimal(1) / edge.rate
            hops[reverse_pair] = _Hop(inverse, edge.id)
            derived[reverse_pair] = DerivedRate(
                from_currency=to_code,
                to_currency=from_code,
                rate=_round_rate(inverse),
                derived_from=(edge.id,),
                path=reverse_pair,
            )

        adjacency = _build_adjacency(hops)
        codes = _unique(active_codes)
        unresolved: list[tuple[str, str]] = []

        for source in codes:
            parents = _breadth_first_parents(source, adjacency)
            for target in codes:
                if target == source or (source, target) in hops:
                    continue
                if target not in parents:
                    unresolved.append((source, target))
                    continue
                path = _walk_back(target, parents)
                product = Decimal(1)
                sources = []
                for step in zip(path, path[1:]):
                    hop = hops[step]
                    product *= hop.rate
                    sources.append(hop.source_edge_id)
                derived[(source, target)] = DerivedRate(
                    from_currency=source,
                    to_currency=target,
                    rate=_round_rate(product),
                    derived_from=tuple(sources),
                    path=tuple(path),
                )

    return ClosurePlan(
        derived=[derived[pair] for pair in sorted(derived)],
        unresolved_pairs=sorted(unresolved),
    )


def _build_adjacency(
    hops: dict[tuple[str, str], _Hop],
) -> dict[str, list[str]]:
    adjacency: dict[str, list[str]] = {}
    for from_code, to_code in hops:
        adjacency.setdefault(from_code, []).append(to_code)
    for neighbours in adjacency.values():
        neighbours.sort()
    return adjacency


def _breadth_first_parents(
    source: str,
    adjacency: dict[str, list[str]],
) -> dict[str, str | None]:
    parents: dict[str, str | None] = {source: None}
    queue = deque([source])
    while queue:
        node = queue.popleft()
        for neighbour in adjacency.get(node, ()):
            if neighbour in parents:
                continue
            parents[neighbour] = node
            queue.append(neighbour)
    return parents


def _walk_back(target: str, parents: dict[str, str | None]) -> list[str]:
    path = [target]
    node = parents[target]
    while node is not None:
        path.append(node)
        node = parents[node]
    path.reverse()
    return path


def _round_rate(value: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = DERIVED_RATE_SIGNIFICANT_DIGITS
        ctx.rounding = DERIVED_RATE_ROUNDING
        return +value


def _unique(codes: Sequence[str]) -> list[str]:
    seen = set()
    ordered = []
    for code in codes:
        if code in seen:
            continue
        seen.add(code)
        ordered.append(code)
    return ordered


__all__ = ["DerivedRate", "ClosurePlan", "compute_closure"]
