"""Clients for external services (OpenAI, WordPress)."""
