from .auth import BearerIdentityMiddleware

__all__ = ["BearerIdentityMiddleware"]
