"""Backend client, request normalization and stream relay."""
