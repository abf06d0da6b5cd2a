from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    solana_rpc_url: str = "https://api.mainnet-beta.solana.com"
    rpc_rate_per_second: float = Field(5.0, gt=0)
    rpc_timeout: float = Field(30.0, gt=0)
    lookup_concurrency: int = Field(8, gt=0)
    signature_page_size: int = Field(1000, gt=0, le=1000)
    system_program_id: str = "11111111111111111111111111111111"
    token_program_id: str = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
    token_2022_program_id: str = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
    associated_token_program_id: str = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
    debug: bool = False

    class Config:
        env_file = ".env"


settings = Settings()
