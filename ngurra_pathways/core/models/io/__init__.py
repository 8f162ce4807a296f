"""
I/O models for API requests and responses.

These Pydantic schemas define the contract between API endpoints and clients.
They are kept apart from the database entities so the API contract can evolve
independently of the table layout.

Modules:
- common: Pagination and acknowledgement models
- users: Accounts, profiles and auth token responses
- jobs: Job listings and applications
- messaging: Conversations and direct messages
- feed: Posts, reactions, comments, connections, follows and blocks
- mentorship: Mentor sessions and reviews
- billing: Tiers, subscriptions, invoices and webhook acknowledgements
- uploads: Presigned uploads and file metadata
- notifications: In-app notifications
"""
