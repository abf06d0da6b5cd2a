"""AccountCreationDetector — find accounts that came into existence during one transaction."""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence

from pydantic import BaseModel, ConfigDict

from pdatrace.domain.enums import ALLOCATING_INSTRUCTIONS, CreationSignal, CreationTag
from pdatrace.domain.models.program_ids import ProgramIds
from pdatrace.exceptions import MalformedInput, MissingMetadata
from pdatrace.parser.registry import DerivationContext, DerivationRecipe, DerivationRegistry
from pdatrace.parser.tree import iter_preorder
from pdatrace.parser.utils.ata import derive_associated_token_address
from pdatrace.parser.utils.system_program import TARGET_ACCOUNT_POSITION, decode_system_instruction
from pdatrace.parser.utils.types import AccountInfo, CallNode, CreatedAccountRecord, Transaction

logger = logging.getLogger(__name__)

AccountLookup = Callable[[str], Awaitable[AccountInfo | None] | AccountInfo | None]


class DetectionPolicy(BaseModel):
    """Caller-tunable filtering. Defaults drop the subject and system-owned accounts, tag ATAs."""

    model_config = ConfigDict(frozen=True)

    include_subject: bool = False
    include_system_owned: bool = False
    classify_ata: bool = True
    ata_mints: tuple[str, ...] = ()
    ata_mints_from_transaction: bool = True  # also check mints seen in token balances


class AccountCreationDetector:
    """Merges the balance signal and the allocation-call signal, then filters and classifies.

    Holds no per-transaction state. The only side effect of detect() is calling the lookup,
    once per distinct candidate, at most max_concurrency at a time.
    """

    def __init__(
        self,
        program_ids: ProgramIds | None = None,
        registry: DerivationRegistry | None = None,
        policy: DetectionPolicy | None = None,
        max_concurrency: int = 8,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self._program_ids = program_ids or ProgramIds()
        self._registry = registry or DerivationRegistry()
        self._policy = policy or DetectionPolicy()
        self._max_concurrency = max_concurrency

    async def detect(
        self,
        tx: Transaction,
        tree: Sequence[CallNode],
        subject: str,
        lookup: AccountLookup,
    ) -> set[CreatedAccountRecord]:
        """Return the classified created accounts of tx as seen from subject.

        Raises MissingMetadata if tx has no execution results, MalformedInput if its balances
        don't line up with its account keys. LookupFailure from the lookup propagates.
        """
        candidates = self.raw_candidates(tx, tree)
        if subject in candidates and not self._policy.include_subject:
            del candidates[subject]

        infos = await self._lookup_all(list(candidates), lookup)

        context = DerivationContext(
            subject=subject,
            account_keys=tx.account_keys,
            mints=self._ata_mints(tx),
        )
        records: set[CreatedAccountRecord] = set()
        for address, signals in candidates.items():
            info = infos.get(address)
            if info is None:
                logger.debug("Candidate %s no longer exists, dropping", address)
                continue

            tag, recipe = self._classify(address, info, context)
            if tag is None:
                continue
            records.add(CreatedAccountRecord(
                address=address,
                tag=tag,
                owner=info.owner,
                signals=frozenset(s.value for s in signals),
                matched_recipe=recipe.name if recipe is not None else None,
            ))

        logger.debug(
            "Transaction %s: %d candidates, %d created accounts",
            tx.signature, len(candidates), len(records),
        )
        return records

    def raw_candidates(self, tx: Transaction, tree: Sequence[CallNode]) -> dict[str, set[CreationSignal]]:
        """Union of both signals before any filtering: {address: signals that fired}."""
        candidates: dict[str, set[CreationSignal]] = {}
        for address in self.balance_candidates(tx):
            candidates.setdefault(address, set()).add(CreationSignal.BALANCE)
        for address in self.allocation_candidates(tx, tree):
            candidates.setdefault(address, set()).add(CreationSignal.ALLOCATION)
        return candidates

    def balance_candidates(self, tx: Transaction) -> list[str]:
        """Accounts that went from 0 to a positive balance. Also fires for plain funded accounts."""
        meta = self._require_meta(tx)
        return [
            tx.account_keys[i]
            for i, (pre, post) in enumerate(zip(meta.pre_balances, meta.post_balances))
            if pre == 0 and post > 0
        ]

    def allocation_candidates(self, tx: Transaction, tree: Sequence[CallNode]) -> list[str]:
        """Targets of system CreateAccount*/Allocate* calls anywhere in the call tree, in execution order."""
        self._require_meta(tx)
        found: list[str] = []
        for node in iter_preorder(tree):
            ix = node.instruction
            if tx.program_id(ix) != self._program_ids.system:
                continue
            kind = decode_system_instruction(ix)
            if kind not in ALLOCATING_INSTRUCTIONS:
                continue
            position = TARGET_ACCOUNT_POSITION[kind]
            if position >= len(ix.accounts):
                logger.debug("%s at depth %d has no account at position %d", kind.name, node.depth, position)
                continue
            address = tx.account_at(ix.accounts[position])
            if address is not None and address not in found:
                found.append(address)
        return found

    def _require_meta(self, tx: Transaction):
        meta = tx.meta
        if meta is None or meta.pre_balances is None or meta.post_balances is None:
            raise MissingMetadata(f"Transaction {tx.signature} has no execution metadata")
        if len(meta.pre_balances) != len(tx.account_keys) or len(meta.post_balances) != len(tx.account_keys):
            raise MalformedInput(
                f"Transaction {tx.signature}: {len(tx.account_keys)} account keys but "
                f"{len(meta.pre_balances)}/{len(meta.post_balances)} pre/post balances"
            )
        return meta

    def _ata_mints(self, tx: Transaction) -> tuple[str, ...]:
        mints = list(self._policy.ata_mints)
        if self._policy.ata_mints_from_transaction and tx.meta is not None:
            mints.extend(tx.meta.token_mints)
        return tuple(dict.fromkeys(mints))

    def _classify(
        self, address: str, info: AccountInfo, context: DerivationContext
    ) -> tuple[str | None, DerivationRecipe | None]:
        """Tag for a materialized candidate, or (None, None) to drop it.

        The lookup result is the last observed state, so its owner is authoritative. An ATA
        match takes precedence over a recipe match.
        """
        if address == context.subject:
            return CreationTag.SELF.value, None

        if info.owner == self._program_ids.system:
            if self._policy.include_system_owned:
                return CreationTag.SYSTEM_OWNED.value, None
            return None, None

        if self._policy.classify_ata and info.owner in self._program_ids.token_programs:
            for mint in context.mints:
                ata = derive_associated_token_address(
                    context.subject, mint, info.owner, self._program_ids.associated_token
                )
                if ata == address:
                    return CreationTag.ASSOCIATED_TOKEN_ACCOUNT.value, None

        recipe = self._registry.match(address, info.owner, context)
        if recipe is not None:
            return CreationTag.matched(recipe.program_id), recipe

        return CreationTag.PROGRAM_OWNED_UNCLASSIFIED.value, None

    async def _lookup_all(self, addresses: list[str], lookup: AccountLookup) -> dict[str, AccountInfo | None]:
        """Resolve each address once, concurrently. Any failure cancels the lookups still in flight."""
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _one(address: str) -> tuple[str, AccountInfo | None]:
            async with semaphore:
                result = lookup(address)
                if inspect.isawaitable(result):
                    result = await result
                return address, result

        tasks = [asyncio.ensure_future(_one(a)) for a in addresses]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise
        return dict(results)
