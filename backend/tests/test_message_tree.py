"""Tests for message chain reconstruction and derived names."""

from dataclasses import dataclass
from typing import Optional

from jensengpt.utils.message_tree import (
    branch_name_for,
    build_message_chain,
    chain_depth,
    conversation_title_for,
    select_context,
)


@dataclass
class Node:
    id: int
    parent_id: Optional[int]
    content: str = ""


def linear_tree():
    # 1 <- 2 <- 3, plus 4 forking off 1
    return [Node(1, None, "A"), Node(2, 1, "B"), Node(3, 2, "C"), Node(4, 1, "D")]


def test_chain_is_root_first():
    chain = build_message_chain(linear_tree(), 3)
    assert [n.content for n in chain] == ["A", "B", "C"]


def test_chain_follows_fork():
    chain = build_message_chain(linear_tree(), 4)
    assert [n.id for n in chain] == [1, 4]


def test_chain_for_none_is_empty():
    assert build_message_chain(linear_tree(), None) == []


def test_chain_for_unknown_id_is_empty():
    assert build_message_chain(linear_tree(), 999) == []


def test_chain_stops_at_missing_link():
    messages = [Node(5, 42, "orphan"), Node(6, 5, "child")]
    assert [n.id for n in build_message_chain(messages, 6)] == [5, 6]


def test_chain_terminates_on_cycle():
    messages = [Node(1, 2), Node(2, 1)]
    chain = build_message_chain(messages, 1)
    assert len(chain) == 2


def test_chain_depth():
    assert chain_depth(linear_tree(), 3) == 2
    assert chain_depth(linear_tree(), 1) == 0
    assert chain_depth(linear_tree(), 999) == 0


def test_select_context_takes_latest():
    history = [Node(i, i - 1 if i > 1 else None) for i in range(1, 16)]
    assert [n.id for n in select_context(history, 10)] == list(range(6, 16))
    assert select_context(history, 0) == []
    assert len(select_context(history[:3], 10)) == 3


def test_conversation_title_truncates_at_30():
    assert conversation_title_for("Hello there") == "Hello there"
    long_message = "x" * 45
    assert conversation_title_for(long_message) == "x" * 30 + "..."
    assert conversation_title_for("y" * 30) == "y" * 30


def test_branch_name_quotes_parent_prefix():
    assert branch_name_for("Hello, world") == 'Branch from "Hello, world"'
    assert branch_name_for("abcdefghijklmnopqrstuvwxyz") == 'Branch from "abcdefghijklmnopqrst..."'
