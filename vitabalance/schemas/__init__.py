"""VitaBalance API - Pydantic Schemas Package."""
