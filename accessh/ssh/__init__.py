"""Multi-session SSH service."""
