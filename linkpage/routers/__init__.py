"""
FastAPI routers grouped by domain (auth, pages).

Each module exposes an APIRouter that the app factory includes. Endpoints
stay thin: they resolve the caller, call a service, and map ServiceError
subclasses to JSON error bodies.
"""
