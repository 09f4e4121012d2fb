"""Error kinds raised while loading, projecting and calling SOAP services."""

from __future__ import annotations


class Wsdl2ApiError(Exception):
    """Base class for every error raised by wsdl2api."""


class FetchError(Wsdl2ApiError):
    """The WSDL document could not be read from disk or fetched over HTTP."""


class ParseError(Wsdl2ApiError):
    """The document is not XML or its top-level WSDL shape is malformed."""


class EnvelopeError(ParseError):
    """A response is neither a SOAP 1.1 nor a SOAP 1.2 envelope."""


class UnresolvedReferenceError(Wsdl2ApiError):
    """A message, port type, binding or type reference points nowhere."""

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"unresolved {kind} reference: {name!r}")


class ProjectionWarning(UserWarning):
    """An unknown complex type was projected to an opaque generic type."""


class GenerationError(Wsdl2ApiError):
    """An emitter failed; nothing is written for that target."""

    def __init__(self, target: str, cause: Exception) -> None:
        self.target = target
        self.cause = cause
        super().__init__(f"{target} generation failed: {cause}")


class TransportError(Wsdl2ApiError):
    """The SOAP endpoint could not be reached or answered with a bad status."""

    def __init__(self, message: str, status: int | None = None, body: str = "") -> None:
        self.status = status
        self.body = body
        super().__init__(message)


class SoapFault(Wsdl2ApiError):
    """A SOAP Fault returned by the remote service."""

    def __init__(
        self,
        code: str,
        string: str,
        actor: str = "",
        detail: str = "",
    ) -> None:
        self.code = code
        self.string = string
        self.actor = actor
        self.detail = detail
        super().__init__(f"SOAP fault {code}: {string}")

    def to_dict(self) -> dict[str, str]:
        return {
            "faultcode": self.code,
            "faultstring": self.string,
            "faultactor": self.actor,
            "detail": self.detail,
        }
