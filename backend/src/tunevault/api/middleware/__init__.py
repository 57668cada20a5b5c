"""API middleware package."""

from tunevault.api.middleware.request_id import RequestIDMiddleware

__all__ = ["RequestIDMiddleware"]
