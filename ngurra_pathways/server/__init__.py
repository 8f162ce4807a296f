"""
Ngurra Pathways Server Package.

This package contains the web server implementation for the Ngurra Pathways platform.
It includes the API definition, core service logic, and configuration.

Subpackages:
    api: FastAPI route definitions and endpoint logic.
    core: Core configurations, security helpers and constants.
    services: Business logic and service layer.
    middleware: Request logging middleware.
    exception_handlers: Mapping of domain errors and unhandled exceptions to JSON responses.
"""
