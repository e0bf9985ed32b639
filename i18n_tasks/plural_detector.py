"""Telling pluralization groups apart from ordinary nested hashes."""

import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from i18n_tasks.key_tree import KeyTree, join_key, split_key
from i18n_tasks.plural_rules import is_plural_category, sort_categories

# A value consisting of nothing but one interpolation, e.g. "%{count}"
SINGLE_INTERPOLATION_RE = re.compile(r"^\s*%\{[^{}]+\}\s*$")


@dataclass(frozen=True)
class PluralGroup:
    categories: Tuple[str, ...]


@dataclass(frozen=True)
class OrdinaryNode:
    pass


ORDINARY_NODE = OrdinaryNode()

NodeClassification = Union[PluralGroup, OrdinaryNode]


def classify(node: Optional[KeyTree]) -> NodeClassification:
    """Classify a node as a plural group or an ordinary node.

    A node is a plural group when it is internal, non-empty, and every child is a
    leaf named after a CLDR plural category. A single extraneous child, such as
    ``green`` next to ``one``, or a nested hash among the children makes it an
    ordinary hash.

    Args:
        node: The node to classify. None is treated as an ordinary node.

    Returns:
        PluralGroup with the categories in canonical order, or ORDINARY_NODE
    """
    if node is None or node.is_leaf:
        return ORDINARY_NODE
    children = node.children
    if not children:
        return ORDINARY_NODE
    for child in children:
        if not child.is_leaf or not is_plural_category(child.key):
            return ORDINARY_NODE
    return PluralGroup(tuple(sort_categories(child.key for child in children)))


def is_plural_group(node: Optional[KeyTree]) -> bool:
    return isinstance(classify(node), PluralGroup)


def is_collapsed_plural(node: Optional[KeyTree]) -> bool:
    """Whether a leaf is a single interpolation string standing in for a plural group."""
    if node is None or not node.is_leaf:
        return False
    return isinstance(node.value, str) and bool(SINGLE_INTERPOLATION_RE.match(node.value))


def depluralize(tree: KeyTree, key: str) -> str:
    """Map a key naming one plural category back to its plural group's key.

    Keys not directly under a plural group, and keys not found in ``tree``, are
    returned unchanged, so depluralizing twice gives the same result as once.

    Args:
        tree: The locale tree the key is looked up in (key relative to its root)
        key: Dotted key, e.g. "nested.plural_key.one"

    Returns:
        str: The depluralized key, e.g. "nested.plural_key"
    """
    segments = split_key(key)
    if len(segments) < 2 or not is_plural_category(segments[-1]):
        return key
    node = tree.get(segments)
    if node is None or not node.is_leaf:
        return key
    if is_plural_group(tree.get(segments[:-1])):
        return join_key(*segments[:-1])
    return key
