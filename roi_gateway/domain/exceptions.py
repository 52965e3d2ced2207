"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class CatalogLoadError(DomainException):
    """A price, benefit or plan-rule catalog is missing or malformed"""

    pass


class UpstreamError(DomainException):
    """Invoicing platform returned an error or is unavailable"""

    pass


class AuthenticationFailure(DomainException):
    """Invoicing platform rejected our credentials (HTTP 401)"""

    pass
