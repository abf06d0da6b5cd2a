"""PdaScanner — pages an address's history and runs tree building + detection per transaction."""

import logging

from pydantic import BaseModel

from pdatrace.domain.enums import ScanErrorType
from pdatrace.exceptions import ExternalServiceError, LookupFailure, MalformedInput, MissingMetadata, PdaTraceError
from pdatrace.infra.solana.rpc_client import SolanaRPCClient
from pdatrace.infra.solana.signature_pager import SignaturePager
from pdatrace.parser.detector import AccountCreationDetector
from pdatrace.parser.tree import InstructionTreeBuilder
from pdatrace.parser.utils.solana_tx import parse_transaction
from pdatrace.parser.utils.types import CreatedAccountRecord

logger = logging.getLogger(__name__)

ERROR_TYPES: dict[type[PdaTraceError], ScanErrorType] = {
    MalformedInput: ScanErrorType.MALFORMED_INPUT,
    MissingMetadata: ScanErrorType.MISSING_METADATA,
    LookupFailure: ScanErrorType.LOOKUP_FAILURE,
    ExternalServiceError: ScanErrorType.RPC_ERROR,
}


class TxScanResult(BaseModel):
    signature: str
    slot: int | None = None
    created: list[CreatedAccountRecord] = []


class ScanError(BaseModel):
    signature: str
    error_type: ScanErrorType
    message: str


class ScanReport(BaseModel):
    """Outcome of one scan. `cursor` resumes the scan with a new call."""

    address: str
    results: list[TxScanResult] = []
    errors: list[ScanError] = []
    skipped_failed: int = 0
    cursor: str | None = None
    page_error: str | None = None  # set when paging stopped early; resume from cursor

    @property
    def created_accounts(self) -> list[CreatedAccountRecord]:
        return [record for result in self.results for record in result.created]


class PdaScanner:
    """Address → signatures → transactions → call trees → created accounts.

    One transaction's failure is recorded in the report and never aborts the batch.
    """

    def __init__(
        self,
        rpc: SolanaRPCClient,
        detector: AccountCreationDetector,
        builder: InstructionTreeBuilder | None = None,
        page_size: int = 1000,
    ) -> None:
        self._rpc = rpc
        self._detector = detector
        self._builder = builder or InstructionTreeBuilder()
        self._page_size = page_size

    async def scan(
        self,
        address: str,
        limit: int | None = None,
        before: str | None = None,
        until: str | None = None,
        skip_failed: bool = True,
    ) -> ScanReport:
        """Scan up to `limit` signatures of address (newest-first) for created accounts.

        If a signature page can't be fetched the scan stops there and returns what it has, with
        `page_error` set and `cursor` at the last signature handed out.
        """
        report = ScanReport(address=address)
        pager = SignaturePager(self._rpc, address, before=before, until=until, page_size=self._page_size)

        seen = 0
        try:
            async for sig_info in pager:
                if limit is not None and seen >= limit:
                    break
                seen += 1
                report.cursor = sig_info["signature"]

                if skip_failed and sig_info.get("err") is not None:
                    report.skipped_failed += 1
                    continue

                await self._scan_one(address, sig_info, report)
        except ExternalServiceError as e:
            logger.warning("Signature paging for %s stopped after %s: %s", address, report.cursor, e)
            report.page_error = str(e)

        logger.info(
            "Scanned %d signatures for %s: %d created accounts, %d errors",
            seen, address, len(report.created_accounts), len(report.errors),
        )
        return report

    async def scan_transaction(self, tx_data: dict, subject: str) -> set[CreatedAccountRecord]:
        """Run tree building and detection on one already-fetched getTransaction result."""
        tx = parse_transaction(tx_data)
        tree = self._builder.build_tree_for(tx)
        return await self._detector.detect(tx, tree, subject, self._rpc.get_account_info)

    async def _scan_one(self, address: str, sig_info: dict, report: ScanReport) -> None:
        signature = sig_info["signature"]
        try:
            tx_data = await self._rpc.get_transaction(signature)
            if tx_data is None:
                report.errors.append(ScanError(
                    signature=signature,
                    error_type=ScanErrorType.NOT_FOUND,
                    message="Transaction not returned by RPC",
                ))
                return
            created = await self.scan_transaction(tx_data, address)
        except PdaTraceError as e:
            logger.warning("Skipping %s: %s", signature, e)
            report.errors.append(ScanError(
                signature=signature,
                error_type=ERROR_TYPES.get(type(e), ScanErrorType.RPC_ERROR),
                message=str(e),
            ))
            return
        except Exception as e:
            # unexpected failures are recorded like provider errors
            logger.exception("Failed to scan transaction %s", signature)
            report.errors.append(ScanError(
                signature=signature,
                error_type=ScanErrorType.RPC_ERROR,
                message=str(e),
            ))
            return

        report.results.append(TxScanResult(
            signature=signature,
            slot=sig_info.get("slot"),
            created=sorted(created, key=lambda r: r.address),
        ))
