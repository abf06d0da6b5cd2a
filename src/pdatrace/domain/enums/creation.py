from enum import Enum


class CreationTag(str, Enum):
    """Classification of a created account. Matched recipes use MATCHED_PREFIX + program id."""

    SELF = "self"
    ASSOCIATED_TOKEN_ACCOUNT = "associated-token-account"
    SYSTEM_OWNED = "system-owned"
    PROGRAM_OWNED_UNCLASSIFIED = "program-owned-unclassified"

    @staticmethod
    def matched(program_id: str) -> str:
        return f"{MATCHED_PREFIX}{program_id}"


MATCHED_PREFIX = "program-owned-matched:"


class CreationSignal(str, Enum):
    """Which heuristic surfaced a candidate."""

    BALANCE = "balance"
    ALLOCATION = "allocation"
