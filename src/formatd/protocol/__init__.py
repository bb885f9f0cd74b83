"""Framing, decoding and encoding for the stdio JSON-RPC protocol."""

from __future__ import annotations

from formatd.protocol.contracts import ErrorDetail, FormatOptions, FormatParams, Request, Response
from formatd.protocol.decoder import decode_request
from formatd.protocol.errors import DecodeError, FramingError, InvalidRequestError, ProtocolError
from formatd.protocol.reader import ByteSource, FrameReader, ParseState, StreamByteSource
from formatd.protocol.writer import ByteSink, FrameWriter, encode_frame

__all__ = [
    "ByteSink",
    "ByteSource",
    "DecodeError",
    "ErrorDetail",
    "FormatOptions",
    "FormatParams",
    "FrameReader",
    "FrameWriter",
    "FramingError",
    "InvalidRequestError",
    "ParseState",
    "ProtocolError",
    "Request",
    "Response",
    "StreamByteSource",
    "decode_request",
    "encode_frame",
]
