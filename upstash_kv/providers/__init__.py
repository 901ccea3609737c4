"""Concrete implementations of the upstash-kv interfaces."""
