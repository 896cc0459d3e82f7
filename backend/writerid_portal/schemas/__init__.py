"""Pydantic request/response schemas, grouped by resource."""
