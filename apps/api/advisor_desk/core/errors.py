"""Service-layer exceptions mapped to HTTP status codes by routers."""


class ConflictError(ValueError):
    """The request conflicts with existing state (HTTP 409)."""
