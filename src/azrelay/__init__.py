"""OpenAI-compatible relay in front of an Azure chat-completions endpoint."""

__version__ = "1.0.0"
