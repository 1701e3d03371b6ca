"""Airport Radar API - nearby and popular airports."""
