"""HTTP schemas (transport-facing Pydantic models)."""
