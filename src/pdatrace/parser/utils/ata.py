"""Associated token account derivation."""

import logging

from solders.pubkey import Pubkey

logger = logging.getLogger(__name__)


def to_pubkey(address: str) -> Pubkey | None:
    """Parse a base58 address; None if it isn't a valid 32-byte key."""
    try:
        return Pubkey.from_string(address)
    except ValueError:
        logger.debug("Not a valid pubkey: %s", address)
        return None


def derive_associated_token_address(owner: str, mint: str, token_program: str, ata_program: str) -> str | None:
    """Canonical ATA for (owner, mint) under a token program. None if any input isn't a pubkey."""
    keys = [to_pubkey(k) for k in (owner, token_program, mint, ata_program)]
    if any(k is None for k in keys):
        return None
    owner_key, token_key, mint_key, ata_key = keys
    address, _bump = Pubkey.find_program_address(
        [bytes(owner_key), bytes(token_key), bytes(mint_key)],
        ata_key,
    )
    return str(address)
