"""Clusterforge: load-or-generate asset graphs for image-based cluster installs.

Each build resolves a target's root assets through a memoized dependency
graph, preferring previously written files over regeneration, and writes
the roots' files only once every root has resolved:
  - Typed asset contract with declared dependencies
  - Cycle rejection before any asset is loaded or generated
  - Strict decoding and aggregated validation of user input
  - Ed25519 signer key pairs and CA bundles via PyNaCl
  - Readiness polling with log down-sampling
"""

__version__ = "0.1.0"
__description__ = "Asset dependency graph engine for image-based cluster installs"

from clusterforge.core.orchestrator import Orchestrator
from clusterforge.targets import TARGET_REGISTRY, get_target

__all__ = ["Orchestrator", "TARGET_REGISTRY", "get_target", "__version__"]
