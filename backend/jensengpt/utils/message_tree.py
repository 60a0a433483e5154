"""
Message tree helpers.

Messages form a parent-pointer tree per conversation; a branch is one linear
path through it. These helpers rebuild linear paths from the flat message set
the store returns and derive the names used when the chat relay creates
conversations and branches.
"""

from typing import Dict, List, Optional, Protocol, Sequence, TypeVar


class TreeNode(Protocol):
    id: int
    parent_id: Optional[int]


NodeT = TypeVar("NodeT", bound=TreeNode)

MAIN_BRANCH_NAME = "Main Branch"
TITLE_PREFIX_LENGTH = 30
BRANCH_NAME_PREFIX_LENGTH = 20


def build_message_chain(messages: Sequence[NodeT], parent_message_id: Optional[int]) -> List[NodeT]:
    """Return the ancestor chain ending at ``parent_message_id``, root first.

    A missing link ends the walk and whatever was collected is returned; an
    unknown start id therefore yields an empty chain. Parents are always
    created before their children, so the walk is bounded by the number of
    messages; the bound also stops a corrupted cycle.
    """
    if parent_message_id is None:
        return []

    by_id: Dict[int, NodeT] = {message.id: message for message in messages}
    chain: List[NodeT] = []
    current_id: Optional[int] = parent_message_id

    while current_id is not None and len(chain) < len(by_id):
        message = by_id.get(current_id)
        if message is None:
            break
        chain.append(message)
        current_id = message.parent_id

    chain.reverse()
    return chain


def chain_depth(messages: Sequence[NodeT], message_id: int) -> int:
    """Number of parent hops from ``message_id`` to its root."""
    return max(len(build_message_chain(messages, message_id)) - 1, 0)


def select_context(history: Sequence[NodeT], limit: int) -> List[NodeT]:
    """The last ``limit`` messages of a linear history."""
    if limit <= 0:
        return []
    return list(history[-limit:])


def _truncate(text: str, length: int) -> str:
    return text[:length] + ("..." if len(text) > length else "")


def conversation_title_for(first_message: str) -> str:
    return _truncate(first_message, TITLE_PREFIX_LENGTH)


def branch_name_for(parent_content: str) -> str:
    return f'Branch from "{_truncate(parent_content, BRANCH_NAME_PREFIX_LENGTH)}"'
