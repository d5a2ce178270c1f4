"""Gemini Proxy: validates caller requests and relays them to the AI service."""

__version__ = "0.1.0"
