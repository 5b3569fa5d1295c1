"""HTTP surface built on FastAPI."""
