"""Tests for system instruction identification."""

from pdatrace.domain.enums import SystemInstruction
from pdatrace.parser.utils.system_program import decode_system_instruction
from pdatrace.parser.utils.types import Instruction


def _ix(data: bytes = b"", parsed_type: str | None = None) -> Instruction:
    return Instruction(program_id_index=0, data=data, parsed_type=parsed_type)


class TestDecodeSystemInstruction:
    def test_u32_discriminator(self):
        data = (3).to_bytes(4, "little") + b"\x00" * 40
        assert decode_system_instruction(_ix(data)) is SystemInstruction.CREATE_ACCOUNT_WITH_SEED

    def test_allocate(self):
        assert decode_system_instruction(_ix((8).to_bytes(4, "little"))) is SystemInstruction.ALLOCATE

    def test_short_data_is_not_a_system_instruction(self):
        assert decode_system_instruction(_ix(b"\x00")) is None
        assert decode_system_instruction(_ix(b"\x09\x00\x00")) is None

    def test_parsed_type_wins(self):
        ix = _ix((2).to_bytes(4, "little"), parsed_type="createAccount")
        assert decode_system_instruction(ix) is SystemInstruction.CREATE_ACCOUNT

    def test_unknown_discriminator(self):
        assert decode_system_instruction(_ix((99).to_bytes(4, "little"))) is None

    def test_unknown_parsed_type(self):
        assert decode_system_instruction(_ix(parsed_type="transferChecked")) is None

    def test_empty_data(self):
        assert decode_system_instruction(_ix()) is None


class TestParsedTypeNames:
    def test_camel_case(self):
        assert SystemInstruction.CREATE_ACCOUNT_WITH_SEED.parsed_type == "createAccountWithSeed"
        assert SystemInstruction.ALLOCATE.parsed_type == "allocate"
        assert SystemInstruction.TRANSFER_WITH_SEED.parsed_type == "transferWithSeed"
