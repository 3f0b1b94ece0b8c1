"""Single-session mode on the local terminal."""
