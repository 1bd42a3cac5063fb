"""GEO schema audit: LLM-backed structured-data audits and WordPress schema publishing."""

__version__ = "1.0.0"
