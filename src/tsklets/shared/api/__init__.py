"""Shared HTTP adapters: middleware, exception mapping, actor resolution."""
