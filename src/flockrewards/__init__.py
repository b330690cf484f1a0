# src/flockrewards/__init__.py
"""
flockrewards: two-tier reward allocation for training nodes and validators.

Package layout:
  - ledger: the pure allocation pipeline (tier split, fractions, owner split)
  - api: FastAPI adapter exposing the pipeline over HTTP
  - cli: command line adapter
  - config / env: operator configuration
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
