"""Small formatting helpers."""
