"""Exception taxonomy. Errors are per-transaction: callers scanning batches catch PdaTraceError per item."""


class PdaTraceError(Exception):
    """Base class for all pdatrace errors."""


class MalformedInput(PdaTraceError):
    """Transaction data cannot be reconciled into a call tree (corrupt or truncated). Skip, don't retry."""


class MissingMetadata(PdaTraceError):
    """Transaction was fetched without execution metadata. Refetch with the right parameters."""


class ExternalServiceError(PdaTraceError):
    """Upstream API returned an error or could not be reached."""


class LookupFailure(PdaTraceError):
    """Account-info lookup failed at the transport level. Safe to retry with backoff.

    Not raised for accounts that simply don't exist; the lookup returns None for those.
    """
