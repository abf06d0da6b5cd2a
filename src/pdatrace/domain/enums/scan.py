from enum import Enum


class ScanErrorType(str, Enum):
    """Categorized per-transaction failures recorded during a scan."""

    MALFORMED_INPUT = "MalformedInput"
    MISSING_METADATA = "MissingMetadata"
    LOOKUP_FAILURE = "LookupFailure"
    NOT_FOUND = "NotFound"
    RPC_ERROR = "RpcError"
