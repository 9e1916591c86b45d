from __future__ import annotations

import heapq
import itertools
import time
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from ..errors import NoPathError, NotFound, SearchTimeout
from ..graph import Arc, GraphSnapshot

# How many heap pops between deadline checks.
_DEADLINE_STRIDE = 256


@dataclass(frozen=True)
class PathStep:
    edge_id: int
    from_node: int
    to_node: int
    cost: float
    forward: bool  # True when travelling along the edge's own orientation


@dataclass(frozen=True)
class PathResult:
    source: int
    target: int
    steps: Tuple[PathStep, ...]
    total_cost: float

    @property
    def edge_ids(self) -> List[int]:
        return [s.edge_id for s in self.steps]

    @property
    def node_ids(self) -> List[int]:
        return [self.source] + [s.to_node for s in self.steps]


def shortest_path(
    snapshot: GraphSnapshot,
    source: int,
    target: int,
    *,
    directed: bool = True,
    penalties: Optional[Mapping[int, float]] = None,
    deadline: Optional[float] = None,
) -> PathResult:
    """Dijkstra from source to target over the snapshot's adjacency.

    Equal-cost frontier entries pop in discovery order, so the same query
    always yields the same path. ``penalties`` multiplies the cost of the
    listed edges during the search only; the reported cost is unpenalised.
    ``deadline`` is a ``time.monotonic()`` value after which the search is
    abandoned with SearchTimeout.
    """
    snapshot.node(source)
    snapshot.node(target)

    seq = itertools.count()
    dist: Dict[int, float] = {source: 0.0}
    prev: Dict[int, Arc] = {}
    settled = set()
    pq: List[Tuple[float, int, int]] = [(0.0, next(seq), source)]
    pops = 0

    while pq:
        cost, _, node = heapq.heappop(pq)
        if node in settled:
            continue
        settled.add(node)
        if node == target:
            break
        pops += 1
        if deadline is not None and pops % _DEADLINE_STRIDE == 0 and time.monotonic() > deadline:
            raise SearchTimeout(f"Route search from {source} to {target} exceeded its deadline")
        for arc in snapshot.arcs(node, directed):
            if arc.head in settled:
                continue
            weight = arc.cost
            if penalties:
                weight *= penalties.get(arc.edge_id, 1.0)
            tentative = cost + weight
            if tentative < dist.get(arc.head, float("inf")):
                dist[arc.head] = tentative
                prev[arc.head] = arc
                heapq.heappush(pq, (tentative, next(seq), arc.head))

    if target not in settled:
        raise NoPathError(source, target)

    arcs: List[Arc] = []
    node = target
    while node != source:
        arc = prev[node]
        arcs.append(arc)
        node = arc.tail
    arcs.reverse()

    steps = tuple(PathStep(a.edge_id, a.tail, a.head, a.cost, a.forward) for a in arcs)
    total = 0.0
    for step in steps:
        total += step.cost
    return PathResult(source=source, target=target, steps=steps, total_cost=total)


def alternative_paths(
    snapshot: GraphSnapshot,
    source: int,
    target: int,
    count: int,
    *,
    directed: bool = True,
    penalty: float = 2.0,
    deadline: Optional[float] = None,
) -> List[PathResult]:
    """Best path followed by up to ``count`` distinct alternatives.

    Approximate k-shortest paths: after each search the edges just used are
    made ``penalty`` times more expensive and the search is repeated. This
    is not Yen's algorithm; alternatives are plausible, not guaranteed to be
    the next-cheapest.
    """
    if count < 0:
        raise ValueError("count must be non-negative")
    best = shortest_path(snapshot, source, target, directed=directed, deadline=deadline)
    found = [best]
    seen = {tuple(best.edge_ids)}
    penalties: Dict[int, float] = {}
    last = best
    for _ in range(count):
        for edge_id in last.edge_ids:
            penalties[edge_id] = penalties.get(edge_id, 1.0) * penalty
        try:
            candidate = shortest_path(
                snapshot, source, target, directed=directed, penalties=penalties, deadline=deadline
            )
        except NotFound:
            break
        last = candidate
        key = tuple(candidate.edge_ids)
        if key in seen:
            continue
        seen.add(key)
        found.append(candidate)
    return found
