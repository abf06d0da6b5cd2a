from enum import IntEnum


class SystemInstruction(IntEnum):
    """System program instruction discriminators (u32 little-endian)."""

    CREATE_ACCOUNT = 0
    ASSIGN = 1
    TRANSFER = 2
    CREATE_ACCOUNT_WITH_SEED = 3
    ADVANCE_NONCE_ACCOUNT = 4
    WITHDRAW_NONCE_ACCOUNT = 5
    INITIALIZE_NONCE_ACCOUNT = 6
    AUTHORIZE_NONCE_ACCOUNT = 7
    ALLOCATE = 8
    ALLOCATE_WITH_SEED = 9
    ASSIGN_WITH_SEED = 10
    TRANSFER_WITH_SEED = 11
    UPGRADE_NONCE_ACCOUNT = 12

    @property
    def parsed_type(self) -> str:
        """Name used by the jsonParsed RPC encoding, e.g. createAccountWithSeed."""
        head, *rest = self.name.lower().split("_")
        return head + "".join(part.capitalize() for part in rest)


# Instructions that bring an account's storage into existence
ALLOCATING_INSTRUCTIONS: frozenset[SystemInstruction] = frozenset({
    SystemInstruction.CREATE_ACCOUNT,
    SystemInstruction.CREATE_ACCOUNT_WITH_SEED,
    SystemInstruction.ALLOCATE,
    SystemInstruction.ALLOCATE_WITH_SEED,
})
