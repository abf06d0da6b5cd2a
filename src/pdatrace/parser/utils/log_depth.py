"""Reconstruct inner-instruction stack heights from program log lines.

Runtime log lines look like:

    Program 11111111111111111111111111111111 invoke [2]
    Program 11111111111111111111111111111111 success
    Program TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA failed: custom program error: 0x1

The bracketed number is the invocation's stack height (1 = top level), the same scale as
the stackHeight field newer RPC nodes attach to inner instructions.
"""

import logging
import re

logger = logging.getLogger(__name__)

BASE58 = r"[1-9A-HJ-NP-Za-km-z]+"
INVOKE_RE = re.compile(rf"^Program ({BASE58}) invoke \[(\d+)\]")
COMPLETE_RE = re.compile(rf"^Program ({BASE58}) (success$|failed)")
TRUNCATED = "Log truncated"


def inner_depths_from_logs(log_messages: list[str] | tuple[str, ...] | None) -> dict[int, list[int]]:
    """Map each top-level instruction index to the stack heights of its inner instructions, in order.

    A depth counter rises on every invoke line and falls on every success/failed line. The
    bracketed height wins when the two disagree. Scanning stops at a truncation marker, so
    groups past that point get fewer (or no) heights.
    """
    depths: dict[int, list[int]] = {}
    counter = 0
    top_index = -1

    for line in log_messages or ():
        if line.startswith(TRUNCATED):
            logger.debug("Program logs truncated after top-level instruction %d", top_index)
            break

        invoke = INVOKE_RE.match(line)
        if invoke is not None:
            counter += 1
            declared = int(invoke.group(2))
            if declared != counter:
                logger.debug("Log depth counter %d resynced to declared height %d", counter, declared)
                counter = declared
            if counter == 1:
                top_index += 1
            elif top_index >= 0:
                depths.setdefault(top_index, []).append(counter)
            continue

        if COMPLETE_RE.match(line) is not None:
            counter = max(counter - 1, 0)

    return depths
