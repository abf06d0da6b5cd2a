"""Core data types for transaction analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict


class Instruction(BaseModel):
    """One instruction, top-level or inner. Account references are indexes into Transaction.account_keys."""

    model_config = ConfigDict(frozen=True)

    program_id_index: int
    accounts: tuple[int, ...] = ()
    data: bytes = b""
    stack_height: int | None = None  # 1 = top level; absent on older data
    parsed_type: str | None = None  # jsonParsed "parsed.type", e.g. "createAccount"


class InnerInstructionGroup(BaseModel):
    """Inner instructions produced by one top-level instruction, in execution order."""

    model_config = ConfigDict(frozen=True)

    index: int  # parent top-level instruction
    instructions: tuple[Instruction, ...] = ()


class TransactionMeta(BaseModel):
    """Execution results. Balances are parallel to Transaction.account_keys."""

    model_config = ConfigDict(frozen=True)

    pre_balances: tuple[int, ...] | None = None
    post_balances: tuple[int, ...] | None = None
    inner_instructions: tuple[InnerInstructionGroup, ...] | None = None
    log_messages: tuple[str, ...] | None = None
    token_mints: tuple[str, ...] = ()
    fee: int = 0
    err: Any = None


class Transaction(BaseModel):
    """A fetched transaction with resolved account keys (static + lookup-table)."""

    model_config = ConfigDict(frozen=True)

    signature: str | None = None
    slot: int | None = None
    block_time: int | None = None
    account_keys: tuple[str, ...]
    instructions: tuple[Instruction, ...] = ()
    meta: TransactionMeta | None = None

    def program_id(self, instruction: Instruction) -> str | None:
        if 0 <= instruction.program_id_index < len(self.account_keys):
            return self.account_keys[instruction.program_id_index]
        return None

    def account_at(self, index: int) -> str | None:
        if 0 <= index < len(self.account_keys):
            return self.account_keys[index]
        return None


@dataclass
class CallNode:
    """One invocation in the reconstructed call tree. depth is 1-based (1 = top level)."""

    instruction: Instruction
    depth: int
    children: list[CallNode] = field(default_factory=list)


class AccountInfo(BaseModel):
    """Point-in-time account state from the data provider. Absent accounts are represented by None."""

    model_config = ConfigDict(frozen=True)

    address: str
    owner: str
    lamports: int = 0
    executable: bool = False


class CreatedAccountRecord(BaseModel):
    """An account that came into existence during one transaction."""

    model_config = ConfigDict(frozen=True)

    address: str
    tag: str  # CreationTag value or "program-owned-matched:<programId>"
    owner: str
    signals: frozenset[str] = frozenset()
    matched_recipe: str | None = None
