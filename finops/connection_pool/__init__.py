from .database_pool import DatabasePool

__all__ = ["DatabasePool"]
