"""DerivationRegistry — owner program → known PDA derivation recipes."""

import itertools
import logging
from abc import ABC, abstractmethod
from enum import Enum

from pydantic import BaseModel, ConfigDict
from solders.pubkey import Pubkey

from pdatrace.parser.utils.ata import to_pubkey

logger = logging.getLogger(__name__)

METAPLEX_METADATA_PROGRAM = "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"
PUMP_FUN_PROGRAM = "6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P"


class DerivationContext(BaseModel):
    """What a recipe may draw seeds from: the subject and the transaction's keys and mints."""

    model_config = ConfigDict(frozen=True)

    subject: str
    account_keys: tuple[str, ...] = ()
    mints: tuple[str, ...] = ()


class DerivationRecipe(ABC):
    """Strategy interface: does an address owned by PROGRAM_ID follow this protocol's derivation?"""

    NAME: str = "DerivationRecipe"

    def __init__(self, program_id: str) -> None:
        self.program_id = program_id

    @property
    def name(self) -> str:
        return self.NAME

    @abstractmethod
    def matches(self, address: str, context: DerivationContext) -> bool:
        """True if address is one of the PDAs this recipe derives in the given context."""


class SeedKind(str, Enum):
    LITERAL = "literal"
    SUBJECT = "subject"
    PROGRAM = "program"
    ANY_ACCOUNT = "any_account"
    ANY_MINT = "any_mint"


class Seed(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: SeedKind
    value: bytes = b""


def literal(value: bytes | str) -> Seed:
    return Seed(kind=SeedKind.LITERAL, value=value.encode() if isinstance(value, str) else value)


SUBJECT = Seed(kind=SeedKind.SUBJECT)
PROGRAM = Seed(kind=SeedKind.PROGRAM)
ANY_ACCOUNT = Seed(kind=SeedKind.ANY_ACCOUNT)
ANY_MINT = Seed(kind=SeedKind.ANY_MINT)


class SeedRecipe(DerivationRecipe):
    """PDA recipe described by a seed template, e.g. ["metadata", PROGRAM, ANY_ACCOUNT]."""

    NAME = "SeedRecipe"

    def __init__(self, name: str, program_id: str, seeds: list[Seed]) -> None:
        super().__init__(program_id)
        self._name = name
        self._seeds = list(seeds)

    @property
    def name(self) -> str:
        return self._name

    def matches(self, address: str, context: DerivationContext) -> bool:
        program = to_pubkey(self.program_id)
        if program is None:
            return False
        for seeds in self._expand(program, context):
            derived, _bump = Pubkey.find_program_address(seeds, program)
            if str(derived) == address:
                return True
        return False

    def _expand(self, program: Pubkey, context: DerivationContext):
        """Yield every concrete seed list the template produces in this context."""
        options: list[list[bytes]] = []
        for seed in self._seeds:
            if seed.kind is SeedKind.LITERAL:
                options.append([seed.value])
            elif seed.kind is SeedKind.PROGRAM:
                options.append([bytes(program)])
            elif seed.kind is SeedKind.SUBJECT:
                options.append(_key_bytes([context.subject]))
            elif seed.kind is SeedKind.ANY_ACCOUNT:
                options.append(_key_bytes(context.account_keys))
            else:
                options.append(_key_bytes(context.mints))
        for combo in itertools.product(*options):
            yield list(combo)


def _key_bytes(addresses) -> list[bytes]:
    result = []
    for address in dict.fromkeys(addresses):
        key = to_pubkey(address)
        if key is not None:
            result.append(bytes(key))
    return result


class DerivationRegistry:
    """Registry mapping owner program id → recipes, tried in registration order."""

    def __init__(self) -> None:
        self._recipes: dict[str, list[DerivationRecipe]] = {}

    def register(self, recipe: DerivationRecipe) -> None:
        self._recipes.setdefault(recipe.program_id, []).append(recipe)

    def get(self, program_id: str) -> list[DerivationRecipe]:
        return list(self._recipes.get(program_id, []))

    def match(self, address: str, owner: str, context: DerivationContext) -> DerivationRecipe | None:
        """First recipe of the owning program that derives address, or None."""
        for recipe in self._recipes.get(owner, []):
            if recipe.matches(address, context):
                logger.debug("%s matched recipe %s", address, recipe.name)
                return recipe
        return None


def build_default_registry() -> DerivationRegistry:
    """Create a DerivationRegistry with the well-known protocol recipes registered."""
    registry = DerivationRegistry()

    # Metaplex token metadata
    registry.register(SeedRecipe(
        "metaplex-metadata",
        METAPLEX_METADATA_PROGRAM,
        [literal("metadata"), PROGRAM, ANY_ACCOUNT],
    ))
    registry.register(SeedRecipe(
        "metaplex-master-edition",
        METAPLEX_METADATA_PROGRAM,
        [literal("metadata"), PROGRAM, ANY_ACCOUNT, literal("edition")],
    ))

    # pump.fun
    registry.register(SeedRecipe(
        "pump-fun-bonding-curve",
        PUMP_FUN_PROGRAM,
        [literal("bonding-curve"), ANY_ACCOUNT],
    ))

    return registry
