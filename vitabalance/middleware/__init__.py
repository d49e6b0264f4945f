"""VitaBalance API - Middleware Package."""
