"""HTTP layer: FastAPI routes and dependencies."""
