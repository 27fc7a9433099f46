"""Shared helpers for working with the lark Tree/Token nodes the parser emits."""
from __future__ import annotations
from typing import List, Optional
from typing_extensions import TypeAlias, TypeGuard

from lark import Token, Tree

Node: TypeAlias = Tree | Token


def make_tree(data: str, children: List[Node], line: Optional[int] = None, column: Optional[int] = None) -> Tree:
    """Build a tree and stamp the source position of its first token."""
    tree = Tree(data, children)

    if line is not None:
        meta = tree.meta
        meta.line = line
        meta.column = column
        meta.empty = False

    return tree

def make_token(type_: str, value: str, line: Optional[int] = None, column: Optional[int] = None) -> Token:
    return Token(type_, value, line=line, column=column)

def is_tree(node: object) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: object) -> TypeGuard[Token]:
    return isinstance(node, Token)

def tree_label(node: Node) -> Optional[str]:
    return node.data if is_tree(node) else None

def tree_children(node: Node) -> List[Node]:
    if not is_tree(node):
        return []

    children = getattr(node, "children", None)
    if children is None:
        return []

    return list(children)

def node_meta(node: Node) -> Optional[object]:
    if is_tree(node):
        meta = node.meta
        return None if getattr(meta, "empty", True) else meta

    if is_token(node) and node.line is not None:
        return node

    return None

def child_by_label(node: Node, label: str) -> Optional[Tree]:
    for ch in tree_children(node):
        if tree_label(ch) == label:
            return ch

    return None

