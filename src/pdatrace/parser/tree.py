"""InstructionTreeBuilder — rebuild the CPI call tree from flat instruction lists."""

import logging
from collections.abc import Iterator, Sequence

from pdatrace.exceptions import MalformedInput
from pdatrace.parser.utils.log_depth import inner_depths_from_logs
from pdatrace.parser.utils.types import CallNode, InnerInstructionGroup, Instruction, Transaction

logger = logging.getLogger(__name__)

# Depth assumed for the first inner instruction of a group with no usable depth information:
# a direct child of its top-level parent. Policy, not a statement about on-chain truth.
DEFAULT_INNER_DEPTH = 2


class InstructionTreeBuilder:
    """Reconstructs the depth-first call tree whose pre-order walk is on-chain execution order.

    Holds no state between calls; each build works on its own node objects.
    """

    def build_tree(
        self,
        instructions: Sequence[Instruction],
        inner_groups: Sequence[InnerInstructionGroup] | None,
        log_messages: Sequence[str] | None = None,
    ) -> list[CallNode]:
        """Return one root per top-level instruction with inner instructions attached beneath.

        Raises MalformedInput for a group pointing outside the top-level list, or for depths
        that no sequence of pops can reconcile.
        """
        roots = [CallNode(instruction=ix, depth=1) for ix in instructions]
        stacks: dict[int, list[CallNode]] = {i: [root] for i, root in enumerate(roots)}
        log_depths: dict[int, list[int]] | None = None

        for group in inner_groups or ():
            if not 0 <= group.index < len(roots):
                raise MalformedInput(
                    f"Inner instruction group references top-level index {group.index}, "
                    f"but the transaction has {len(roots)} instructions"
                )

            group_ixs = list(group.instructions)
            if group_ixs and all(ix.stack_height is None for ix in group_ixs):
                if log_depths is None:
                    log_depths = inner_depths_from_logs(log_messages)
                group_ixs = self._inject_log_depths(group_ixs, log_depths.get(group.index, []))

            self._attach_group(group.index, group_ixs, stacks[group.index])

        return roots

    def build_tree_for(self, tx: Transaction) -> list[CallNode]:
        """Convenience wrapper pulling instructions, inner groups and logs off a Transaction."""
        meta = tx.meta
        return self.build_tree(
            tx.instructions,
            meta.inner_instructions if meta is not None else None,
            meta.log_messages if meta is not None else None,
        )

    def _inject_log_depths(self, group_ixs: list[Instruction], heights: list[int]) -> list[Instruction]:
        if not heights:
            return group_ixs
        if len(heights) != len(group_ixs):
            logger.debug(
                "Log-derived heights (%d) don't cover group of %d instructions",
                len(heights), len(group_ixs),
            )
        return [
            ix.model_copy(update={"stack_height": heights[i]}) if i < len(heights) else ix
            for i, ix in enumerate(group_ixs)
        ]

    def _attach_group(self, parent_index: int, group_ixs: list[Instruction], stack: list[CallNode]) -> None:
        previous_depth = DEFAULT_INNER_DEPTH
        for position, ix in enumerate(group_ixs):
            depth = ix.stack_height if ix.stack_height is not None else previous_depth

            if depth < 2:
                raise MalformedInput(
                    f"Inner instruction {position} of group {parent_index} has depth {depth}; "
                    "inner instructions start at depth 2"
                )
            if depth > stack[-1].depth + 1:
                raise MalformedInput(
                    f"Inner instruction {position} of group {parent_index} jumps from depth "
                    f"{stack[-1].depth} to {depth}"
                )

            while stack[-1].depth != depth - 1:
                stack.pop()

            node = CallNode(instruction=ix, depth=depth)
            stack[-1].children.append(node)
            stack.append(node)
            previous_depth = depth


def iter_preorder(roots: Sequence[CallNode]) -> Iterator[CallNode]:
    """Yield every node parent-first, siblings in order: on-chain execution order."""
    pending = list(reversed(roots))
    while pending:
        node = pending.pop()
        yield node
        pending.extend(reversed(node.children))
