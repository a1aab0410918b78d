from lazybody.models import (
    DEFAULT_CHUNK_SIZE,
    Failed,
    Loaded,
    NotLoaded,
    Response,
    Streaming,
)
from lazybody.headers import Headers
from lazybody.compression import (
    ACCEPT_ENCODING,
    ContentEncoding,
    DecompressingReader,
    decode_body,
)
from lazybody.errors import (
    LazybodyError,
    ConstructionError,
    DecodeSetupError,
    ReadError,
    ParseError,
    PersistError,
    HTTPError,
)

__all__ = [
    "Response",
    "Headers",
    "DEFAULT_CHUNK_SIZE",
    "NotLoaded",
    "Streaming",
    "Loaded",
    "Failed",
    "ACCEPT_ENCODING",
    "ContentEncoding",
    "DecompressingReader",
    "decode_body",
    "LazybodyError",
    "ConstructionError",
    "DecodeSetupError",
    "ReadError",
    "ParseError",
    "PersistError",
    "HTTPError",
]
