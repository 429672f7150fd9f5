class DomainError(Exception):
    """Business rule violation raised by use cases."""
