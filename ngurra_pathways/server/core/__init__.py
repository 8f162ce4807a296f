"""Server configuration, constants and security helpers."""
