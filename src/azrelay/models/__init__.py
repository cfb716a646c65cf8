"""Request and response data models."""
