"""Well-known program identities, injected rather than global so tests and other clusters can swap them."""

from pydantic import BaseModel, ConfigDict

from pdatrace.config import Settings


class ProgramIds(BaseModel):
    """Program ids the detector treats specially."""

    model_config = ConfigDict(frozen=True)

    system: str = "11111111111111111111111111111111"
    token: str = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
    token_2022: str = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
    associated_token: str = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"

    @property
    def token_programs(self) -> tuple[str, str]:
        return (self.token, self.token_2022)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProgramIds":
        return cls(
            system=settings.system_program_id,
            token=settings.token_program_id,
            token_2022=settings.token_2022_program_id,
            associated_token=settings.associated_token_program_id,
        )
