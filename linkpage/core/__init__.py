"""
Core utilities shared across the LinkPage API.

This package hosts:
- configuration helpers (env vars, secrets, feature flags)
- cross-cutting services such as logging setup, password hashing,
  identity tokens and rate limit helpers.

Routers and services depend on these primitives instead of reading
os.environ or talking to hashing/JWT libraries directly.
"""
