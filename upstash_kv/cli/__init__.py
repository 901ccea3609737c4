"""Command-line tools for upstash-kv."""
