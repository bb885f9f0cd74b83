"""Request/response contract types for the stdio protocol."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from formatd.protocol.constants import INVALID_REQUEST, JSONRPC_VERSION, UNSET


class Request(BaseModel):
    """A decoded request.

    ``id`` is opaque and echoed back verbatim; ``null`` is a valid id.
    ``params`` is validated later by the handler for ``method``.
    """

    method: str = Field(description="Name of the operation to invoke")
    id: Any = Field(description="Caller-chosen identifier used to correlate the response")
    params: Any = Field(default=None, description="Method-specific payload")


class ErrorDetail(BaseModel):
    """Structured error information returned inside a ``Response``."""

    code: int = Field(default=INVALID_REQUEST)
    message: str


class Response(BaseModel):
    """Envelope for a single response written to the output stream.

    Exactly one of ``result`` and ``error`` reaches the wire. A response built
    without an ``id`` is *uncorrelated*: the ``id`` key is omitted entirely,
    which is different from echoing a ``null`` id.
    """

    jsonrpc: str = JSONRPC_VERSION
    id: Any = None
    result: Any = None
    error: ErrorDetail | None = None

    @property
    def correlated(self) -> bool:
        return "id" in self.model_fields_set

    @staticmethod
    def success(request_id: Any, result: Any = None) -> Response:
        """Create a successful response."""
        return Response(id=request_id, result=result)

    @staticmethod
    def failure(message: str, *, request_id: Any = UNSET, code: int = INVALID_REQUEST) -> Response:
        """Create an error response; leave ``request_id`` unset for protocol errors."""
        detail = ErrorDetail(code=code, message=message)
        if request_id is UNSET:
            return Response(error=detail)
        return Response(id=request_id, error=detail)

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON object written for this response, in wire key order."""
        payload: dict[str, Any] = {"jsonrpc": self.jsonrpc}
        if self.correlated:
            payload["id"] = self.id
        if self.error is not None:
            payload["error"] = self.error.model_dump()
        else:
            payload["result"] = self.result
        return payload


class FormatOptions(BaseModel):
    """Options block of a ``format`` request."""

    model_config = ConfigDict(populate_by_name=True)

    engine_options: dict[str, Any] | None = Field(
        default=None,
        alias="prettierOptions",
        description="Explicit engine options; replaces the cached engine config when given",
    )
    parser: str | None = None
    path: str | None = None


class FormatParams(BaseModel):
    """Params of a ``format`` request."""

    text: str
    options: FormatOptions


__all__ = [
    "ErrorDetail",
    "FormatOptions",
    "FormatParams",
    "Request",
    "Response",
]
