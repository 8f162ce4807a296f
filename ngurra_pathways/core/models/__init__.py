"""Request/response models shared by the API and its client."""
