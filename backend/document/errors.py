"""Errors raised by document operations and mapped to HTTP responses by the routers."""


class DocumentError(Exception):
    """Base class for document lifecycle errors."""


class DocumentNotFoundError(DocumentError):
    """The document (or share token) does not exist or is not visible."""


class DocumentForbiddenError(DocumentError):
    """The caller does not own the document."""


class InvalidStateError(DocumentError):
    """The operation does not apply to the document's current status."""
