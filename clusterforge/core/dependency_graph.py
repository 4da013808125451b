"""Asset dependency DAG — closure discovery, cycle rejection, ordering.

The graph is built from a set of root asset classes by walking
``Asset.dependencies()`` breadth-first.  It enforces:
- Every declared dependency is an ``Asset`` subclass.
- The closure is acyclic (Kahn's algorithm); a cycle is a defect in the
  asset declarations and is rejected before anything is resolved.

Each asset class in the closure is instantiated exactly once; the asset
store reuses those instances for the rest of the build.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Container, Iterable

from clusterforge.core.asset import Asset


class DependencyGraphError(ValueError):
    """Base class for structural defects in asset declarations."""


class CyclicDependencyError(DependencyGraphError):
    """Raised when the dependency closure contains a cycle."""


class InvalidDependencyError(DependencyGraphError):
    """Raised when an asset declares something that is not an asset class."""


class DependencyGraph:
    """Directed acyclic graph over the closure of the requested roots.

    Parameters
    ----------
    roots:
        Asset classes requested by the caller.
    resolved:
        Asset classes that are already resolved (e.g. seeded).  They are
        part of the graph but their dependencies are not expanded.
    """

    def __init__(
        self,
        roots: Iterable[type[Asset]],
        *,
        resolved: Container[type[Asset]] = (),
    ) -> None:
        self._roots: list[type[Asset]] = list(roots)
        self._instances: dict[type[Asset], Asset] = {}
        # Forward edges: asset class -> declared dependencies (declaration order)
        self._dependencies: dict[type[Asset], list[type[Asset]]] = {}
        # Reverse edges: asset class -> classes that depend on it
        self._dependents: dict[type[Asset], list[type[Asset]]] = {}
        # Discovery order, used to break ties deterministically
        self._discovery: dict[type[Asset], int] = {}

        self._discover(resolved)
        self._order = self._topological_order()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def _discover(self, resolved: Container[type[Asset]]) -> None:
        """Walk the closure breadth-first, instantiating each class once."""
        for root in self._roots:
            self._check_asset_type(root, owner=None)

        queue = deque(self._roots)
        while queue:
            asset_type = queue.popleft()
            if asset_type in self._dependencies:
                continue
            self._discovery[asset_type] = len(self._discovery)
            self._dependents.setdefault(asset_type, [])

            if asset_type in resolved:
                self._dependencies[asset_type] = []
                continue

            instance = asset_type()
            self._instances[asset_type] = instance
            deps = list(instance.dependencies())
            for dep in deps:
                self._check_asset_type(dep, owner=asset_type)
            self._dependencies[asset_type] = deps

            for dep in dict.fromkeys(deps):
                self._dependents.setdefault(dep, []).append(asset_type)
                queue.append(dep)

    @staticmethod
    def _check_asset_type(candidate: object, owner: type[Asset] | None) -> None:
        if isinstance(candidate, type) and issubclass(candidate, Asset):
            return
        where = f" declared by {owner.__name__}" if owner else ""
        raise InvalidDependencyError(
            f"{candidate!r}{where} is not an Asset class"
        )

    def _topological_order(self) -> list[type[Asset]]:
        """Kahn's algorithm, dependencies before dependents.

        Raises ``CyclicDependencyError`` naming the classes left on a cycle.
        """
        in_degree = {
            t: len(set(deps)) for t, deps in self._dependencies.items()
        }
        queue = deque(
            sorted(
                (t for t, deg in in_degree.items() if deg == 0),
                key=self._discovery.__getitem__,
            )
        )
        order: list[type[Asset]] = []
        while queue:
            node = queue.popleft()
            order.append(node)
            for dependent in sorted(
                self._dependents.get(node, []), key=self._discovery.__getitem__
            ):
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        if len(order) != len(self._dependencies):
            stuck = sorted(
                (t for t, deg in in_degree.items() if deg > 0),
                key=self._discovery.__getitem__,
            )
            raise CyclicDependencyError(
                "Asset dependency graph has a cycle among: "
                + ", ".join(t.__name__ for t in stuck)
            )
        return order

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    @property
    def roots(self) -> list[type[Asset]]:
        return list(self._roots)

    @property
    def asset_types(self) -> list[type[Asset]]:
        """Return every class in the closure, dependencies first."""
        return list(self._order)

    def instance(self, asset_type: type[Asset]) -> Asset:
        """Return the build's single instance of *asset_type*."""
        return self._instances[asset_type]

    def get_dependencies(self, asset_type: type[Asset]) -> list[type[Asset]]:
        """Return direct dependencies in declaration order."""
        return list(self._dependencies.get(asset_type, []))

    def get_dependents(self, asset_type: type[Asset]) -> list[type[Asset]]:
        """Return all transitive dependents (BFS)."""
        result: list[type[Asset]] = []
        queue = deque(self._dependents.get(asset_type, []))
        visited: set[type[Asset]] = set()
        while queue:
            node = queue.popleft()
            if node in visited:
                continue
            visited.add(node)
            result.append(node)
            queue.extend(self._dependents.get(node, []))
        return result

    def __contains__(self, asset_type: object) -> bool:
        return asset_type in self._dependencies

    def __len__(self) -> int:
        return len(self._dependencies)
