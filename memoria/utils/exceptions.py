class MemoriaException(Exception):
    """Base exception for the application"""
    pass


class AuthenticationError(MemoriaException):
    """No verified caller could be resolved from the request"""
    pass


class StoreError(MemoriaException):
    """Underlying persistence failure, surfaced as a generic failure"""
    pass
