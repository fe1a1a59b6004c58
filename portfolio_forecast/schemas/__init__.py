"""Pydantic data contracts shared by the engine and the HTTP layer."""
