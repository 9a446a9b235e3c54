"""HTTP API: FastAPI application, routers and request/response schemas."""
