"""Ngurra Pathways.

Backend for a jobs, mentorship and community platform. The package exposes a
FastAPI application together with the persistence layer it runs on and a small
HTTP client for consumers of the API.

Core subpackages
----------------

- ``ngurra_pathways.core``:

  - Logging and monitoring setup.
  - Domain error types shared by services and exception handlers.
  - SQLModel entities, engine/session management and query helpers.
  - Request/response schemas (``core.models.io``).

- ``ngurra_pathways.server``:

  - FastAPI routers under ``server.api.v1``.
  - Business logic under ``server.services`` (auth, messaging, feed ranking,
    billing, uploads, notifications and the real-time hub).

- ``ngurra_pathways.client``:

  - ``NgurraApiClient`` and the in-memory ``TokenStore`` with idle timeout.
"""

__version__ = "0.1.0"
