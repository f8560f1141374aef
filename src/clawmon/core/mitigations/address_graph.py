"""Index-based undirected address graph.

Addresses (submitters and agent ids alike) are interned into an arena of
integer node ids; adjacency is a list indexed by node id holding
``{neighbour_id: weight}`` maps. One address always maps to one node, no
matter whether it appears as a submitter, as a rated agent, or both.

Used by graph analysis (mutual-pair components), SybilRank (weighted power
iteration), and Jaccard clustering (similarity components).
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable


class AddressGraph:
    """Undirected weighted graph over string addresses.

    Nodes are numbered in insertion order. Self-loops are allowed and are
    stored once with their own weight.

    Thread safety: This class is NOT thread-safe. Build one graph per
    scoring pass and treat it as read-only afterwards.
    """

    def __init__(self) -> None:
        self._addresses: list[str] = []
        self._index: dict[str, int] = {}
        self._adj: list[dict[int, float]] = []

    @property
    def node_count(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self._addresses)

    @property
    def edge_count(self) -> int:
        """Return the number of distinct undirected edges (self-loops count once)."""
        total = 0
        loops = 0
        for node, neighbours in enumerate(self._adj):
            total += len(neighbours)
            if node in neighbours:
                loops += 1
        return (total - loops) // 2 + loops

    def add_node(self, address: str) -> int:
        """Intern ``address`` and return its node id."""
        node = self._index.get(address)
        if node is None:
            node = len(self._addresses)
            self._index[address] = node
            self._addresses.append(address)
            self._adj.append({})
        return node

    def add_edge(self, a: str, b: str, weight: float = 1.0) -> None:
        """Add ``weight`` to the undirected edge between ``a`` and ``b``."""
        u = self.add_node(a)
        v = self.add_node(b)
        self._adj[u][v] = self._adj[u].get(v, 0.0) + weight
        if u != v:
            self._adj[v][u] = self._adj[v].get(u, 0.0) + weight

    def node_id(self, address: str) -> int | None:
        """Return the node id of ``address``, or None if unknown."""
        return self._index.get(address)

    def address(self, node: int) -> str:
        """Return the address stored at ``node``."""
        return self._addresses[node]

    def addresses(self) -> list[str]:
        """Return all addresses in node-id order."""
        return list(self._addresses)

    def neighbours(self, node: int) -> dict[int, float]:
        """Return the ``{neighbour: weight}`` map of ``node``."""
        return self._adj[node]

    def degree(self, node: int) -> int:
        """Return the number of distinct neighbours of ``node``."""
        return len(self._adj[node])

    def has_edge(self, a: str, b: str) -> bool:
        """True if an edge joins ``a`` and ``b``."""
        u = self._index.get(a)
        v = self._index.get(b)
        if u is None or v is None:
            return False
        return v in self._adj[u]

    def connected_components(self, min_size: int = 1) -> list[list[str]]:
        """Find connected components via BFS.

        Nodes are visited in id order, so the output is deterministic for a
        given insertion order. Each component lists its addresses sorted.

        Args:
            min_size: Components smaller than this are dropped.

        Returns:
            List of components, each a sorted list of addresses.
        """
        visited = [False] * len(self._addresses)
        components: list[list[str]] = []

        for start in range(len(self._addresses)):
            if visited[start]:
                continue
            visited[start] = True
            queue: deque[int] = deque([start])
            members: list[int] = []
            while queue:
                current = queue.popleft()
                members.append(current)
                for neighbour in self._adj[current]:
                    if not visited[neighbour]:
                        visited[neighbour] = True
                        queue.append(neighbour)
            if len(members) >= min_size:
                components.append(sorted(self._addresses[m] for m in members))

        return components

    @classmethod
    def from_edges(cls, edges: Iterable[tuple[str, str]]) -> AddressGraph:
        """Build a unit-weight graph from ``(a, b)`` pairs."""
        graph = cls()
        for a, b in edges:
            graph.add_edge(a, b)
        return graph
