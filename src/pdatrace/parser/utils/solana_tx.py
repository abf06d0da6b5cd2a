"""Normalize getTransaction results (json or jsonParsed encoding) into Transaction models."""

import logging

import base58

from pdatrace.domain.enums import SystemInstruction
from pdatrace.exceptions import MalformedInput
from pdatrace.parser.utils.types import InnerInstructionGroup, Instruction, Transaction, TransactionMeta

logger = logging.getLogger(__name__)

SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"

# jsonParsed system instructions lose their account list; rebuild it in the system program's ABI order
PARSED_SYSTEM_ACCOUNTS: dict[str, tuple[str, ...]] = {
    SystemInstruction.CREATE_ACCOUNT.parsed_type: ("source", "newAccount"),
    SystemInstruction.ASSIGN.parsed_type: ("account",),
    SystemInstruction.TRANSFER.parsed_type: ("source", "destination"),
    SystemInstruction.CREATE_ACCOUNT_WITH_SEED.parsed_type: ("source", "newAccount", "base"),
    SystemInstruction.ALLOCATE.parsed_type: ("account",),
    SystemInstruction.ALLOCATE_WITH_SEED.parsed_type: ("account", "base"),
    SystemInstruction.ASSIGN_WITH_SEED.parsed_type: ("account", "base"),
    SystemInstruction.TRANSFER_WITH_SEED.parsed_type: ("source", "sourceBase", "destination"),
}


def parse_transaction(tx_data: dict) -> Transaction:
    """Build a Transaction from a getTransaction result.

    Raises MalformedInput when the message is missing. A missing meta is kept as None so
    the detector can report MissingMetadata.
    """
    transaction = tx_data.get("transaction") or {}
    message = transaction.get("message") if isinstance(transaction, dict) else None
    if not isinstance(message, dict) or not isinstance(message.get("accountKeys"), list):
        raise MalformedInput("Transaction has no message/accountKeys")

    raw_meta = tx_data.get("meta")
    account_keys = _resolve_account_keys(message["accountKeys"], raw_meta or {})
    key_index = {key: i for i, key in enumerate(account_keys)}

    instructions = tuple(
        _parse_instruction(ix, key_index) for ix in message.get("instructions", [])
    )

    signatures = transaction.get("signatures") or []
    return Transaction(
        signature=signatures[0] if signatures else None,
        slot=tx_data.get("slot"),
        block_time=tx_data.get("blockTime"),
        account_keys=account_keys,
        instructions=instructions,
        meta=_parse_meta(raw_meta, key_index) if raw_meta else None,
    )


def _resolve_account_keys(raw_keys: list, meta: dict) -> tuple[str, ...]:
    """Static keys, then lookup-table writable, then readonly.

    jsonParsed inlines lookup-table keys as dicts (source="lookupTable"); json encoding lists them
    under meta.loadedAddresses.
    """
    keys: list[str] = []
    inlined = False
    for key in raw_keys:
        if isinstance(key, dict):
            inlined = True
            keys.append(key.get("pubkey", ""))
        else:
            keys.append(str(key))

    if not inlined:
        loaded = meta.get("loadedAddresses") or {}
        keys.extend(loaded.get("writable", []))
        keys.extend(loaded.get("readonly", []))

    return tuple(keys)


def _parse_meta(meta: dict, key_index: dict[str, int]) -> TransactionMeta:
    inner = meta.get("innerInstructions")
    groups = None
    if inner is not None:
        groups = tuple(
            InnerInstructionGroup(
                index=group.get("index", -1),
                instructions=tuple(_parse_instruction(ix, key_index) for ix in group.get("instructions", [])),
            )
            for group in inner
        )

    mints: list[str] = []
    for tb in (meta.get("preTokenBalances") or []) + (meta.get("postTokenBalances") or []):
        mint = tb.get("mint")
        if mint and mint not in mints:
            mints.append(mint)

    logs = meta.get("logMessages")
    return TransactionMeta(
        pre_balances=meta.get("preBalances"),
        post_balances=meta.get("postBalances"),
        inner_instructions=groups,
        log_messages=tuple(logs) if logs is not None else None,
        token_mints=tuple(mints),
        fee=meta.get("fee", 0) or 0,
        err=meta.get("err"),
    )


def _parse_instruction(ix: dict, key_index: dict[str, int]) -> Instruction:
    if "programIdIndex" in ix:
        program_index = ix["programIdIndex"]
    else:
        program_id = ix.get("programId", "")
        if program_id not in key_index:
            raise MalformedInput(f"Instruction program {program_id!r} not in account keys")
        program_index = key_index[program_id]

    parsed = ix.get("parsed")
    parsed_type = None
    if isinstance(parsed, dict):
        parsed_type = parsed.get("type")
        if ix.get("programId") == SYSTEM_PROGRAM_ID:
            accounts = _accounts_from_parsed(parsed, key_index)
        else:
            # other programs' parsed info has no fixed account layout
            accounts = ()
    else:
        accounts = tuple(_account_index(a, key_index) for a in ix.get("accounts", []))

    data = ix.get("data")
    return Instruction(
        program_id_index=program_index,
        accounts=tuple(a for a in accounts if a is not None),
        data=base58.b58decode(data) if isinstance(data, str) and data else b"",
        stack_height=ix.get("stackHeight"),
        parsed_type=parsed_type,
    )


def _account_index(account: int | str, key_index: dict[str, int]) -> int | None:
    if isinstance(account, int):
        return account
    index = key_index.get(account)
    if index is None:
        logger.debug("Instruction account %s missing from account keys", account)
    return index


def _accounts_from_parsed(parsed: dict, key_index: dict[str, int]) -> tuple[int | None, ...]:
    fields = PARSED_SYSTEM_ACCOUNTS.get(parsed.get("type", ""), ())
    info = parsed.get("info") or {}
    return tuple(_account_index(info[name], key_index) for name in fields if name in info)
