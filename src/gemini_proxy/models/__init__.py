"""
Models package for the Gemini Proxy

Contains the request, outcome and response models for the proxy route.
"""
