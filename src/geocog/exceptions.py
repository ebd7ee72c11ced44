"""Custom exceptions for the pyGeoCog module."""

from __future__ import annotations


class GeoCogError(Exception):
    """Base exception for pyGeoCog."""


class StoreBuildError(GeoCogError):
    """The dataset snapshot is malformed; the store cannot be built."""


class LoaderError(StoreBuildError):
    """Error while reading the dataset files."""


class QueryError(GeoCogError):
    """Error local to a single query."""


class ValidationError(QueryError):
    """Caller-supplied parameters are invalid."""


class NoCriteriaError(ValidationError):
    """No filter criteria were supplied."""

    def __init__(self, message: str = "Au moins un critère de recherche est requis") -> None:
        super().__init__(message)


class UnknownFieldError(ValidationError):
    """The projection requested fields that are not part of the schema."""

    def __init__(self, kind: str, fields: list[str]) -> None:
        self.kind = kind
        self.fields = fields
        super().__init__(f"Champs inconnus pour {kind}: {', '.join(fields)}")


class NotFoundError(QueryError):
    """The requested entity (or parent entity) does not exist."""

    def __init__(self, kind: str, code: str) -> None:
        self.kind = kind
        self.code = code
        super().__init__(f"{kind} introuvable: {code}")
