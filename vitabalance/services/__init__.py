"""VitaBalance API - Services Package."""
