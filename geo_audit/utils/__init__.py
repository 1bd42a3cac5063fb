"""Shared helpers and presentation labels."""
