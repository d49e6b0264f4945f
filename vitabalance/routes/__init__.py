"""VitaBalance API - Routes Package."""
