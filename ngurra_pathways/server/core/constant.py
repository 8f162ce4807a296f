"""Application-wide constants."""

PROJECT_NAME = "Ngurra Pathways API"
API_V1_STR = "/api/v1"
SCHEMA_VERSION = "v1"

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# WebSocket close code sent when the connection token is missing or invalid.
WS_CLOSE_UNAUTHORIZED = 4401
