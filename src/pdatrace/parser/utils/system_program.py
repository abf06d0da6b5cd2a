"""System program instruction identification."""

from pdatrace.domain.enums import SystemInstruction
from pdatrace.parser.utils.types import Instruction

PARSED_TYPES: dict[str, SystemInstruction] = {kind.parsed_type: kind for kind in SystemInstruction}

# Position of the account being created/allocated in each allocating instruction's account list
TARGET_ACCOUNT_POSITION: dict[SystemInstruction, int] = {
    SystemInstruction.CREATE_ACCOUNT: 1,  # [funding, new]
    SystemInstruction.CREATE_ACCOUNT_WITH_SEED: 1,  # [funding, new, base]
    SystemInstruction.ALLOCATE: 0,  # [account]
    SystemInstruction.ALLOCATE_WITH_SEED: 0,  # [account, base]
}


def decode_system_instruction(ix: Instruction) -> SystemInstruction | None:
    """Identify a system instruction from its jsonParsed type or its u32 LE discriminator."""
    if ix.parsed_type is not None:
        return PARSED_TYPES.get(ix.parsed_type)

    # every system instruction carries a full u32 tag
    if len(ix.data) < 4:
        return None
    tag = int.from_bytes(ix.data[:4], "little")

    try:
        return SystemInstruction(tag)
    except ValueError:
        return None
