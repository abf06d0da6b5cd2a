from pdatrace.domain.enums.creation import MATCHED_PREFIX, CreationSignal, CreationTag
from pdatrace.domain.enums.scan import ScanErrorType
from pdatrace.domain.enums.system_instruction import ALLOCATING_INSTRUCTIONS, SystemInstruction

__all__ = [
    "ALLOCATING_INSTRUCTIONS",
    "CreationSignal",
    "CreationTag",
    "MATCHED_PREFIX",
    "ScanErrorType",
    "SystemInstruction",
]
