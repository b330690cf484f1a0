# src/flockrewards/api/__init__.py
"""HTTP adapter: FastAPI app exposing the reward allocation pipeline."""
