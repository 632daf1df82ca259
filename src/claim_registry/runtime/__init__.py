"""Runtime configuration and bootstrap helpers."""
