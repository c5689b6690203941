"""
High-level use cases for the LinkPage API.

Each service module orchestrates repositories/adapters to implement business
rules (register, log in, probe a slug, save a page, etc.).

Routers (FastAPI endpoints) call these services instead of manipulating the
database or tokens directly.
"""
