"""Key trees: the nested key/value structure every analysis operates on.

A ``KeyTree`` node is either a leaf (holds a value plus a ``data`` mapping used
to annotate diff results) or an internal node (an ordered mapping of segment
name to child node). Trees are treated as immutable: ``set``, ``merge`` and
``except_keys`` return new trees and share unchanged subtrees with their input.

A ``Forest`` is an ordered collection of independently rooted trees, one per
locale, so results spanning several locales never share one namespace.
"""

from collections import namedtuple
from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from i18n_tasks.errors import TypeConflict

Leaf = namedtuple("Leaf", ["full_key", "value", "data"])


def split_key(key) -> List[str]:
    """Split a dotted key into its segments. Lists and tuples are taken as already split."""
    if key is None or key == "":
        return []
    if isinstance(key, (list, tuple)):
        return [str(k) for k in key]
    return str(key).split(".")


def join_key(*parts) -> str:
    return ".".join(str(p) for p in parts if p is not None and p != "")


class KeyTree:
    """A node of a locale key tree."""

    def __init__(self, key=None, value=None, children=None, data=None):
        if children is not None and value is not None:
            raise TypeConflict(key, "A node cannot hold both a value and children")
        self.key = None if key is None else str(key)
        self.value = value
        self.data = dict(data) if data else {}
        self._children: Optional[Dict[str, "KeyTree"]] = None
        if children is not None:
            self._children = {}
            items = children.items() if isinstance(children, Mapping) else ((c.key, c) for c in children)
            for name, child in items:
                name = str(name)
                if name in self._children:
                    raise ValueError(f"Duplicate segment '{name}' under {self.key!r}")
                if child.key != name:
                    child = child.renamed(name)
                self._children[name] = child

    @classmethod
    def from_dict(cls, data, key=None) -> "KeyTree":
        """Build a tree from a parsed YAML/JSON mapping.

        Args:
            data: Nested mapping of keys to scalar values or further mappings
            key: Name of the returned node, usually the locale code

        Returns:
            KeyTree: An internal node for mappings, a leaf otherwise
        """
        if isinstance(data, Mapping):
            return cls(key, children=[cls.from_dict(v, k) for k, v in data.items()])
        return cls(key, value=data)

    def to_dict(self):
        """Convert back to plain nested dicts. Leaves return their value."""
        if self.is_leaf:
            return self.value
        return {name: child.to_dict() for name, child in self._children.items()}

    @property
    def is_leaf(self) -> bool:
        return self._children is None

    @property
    def children(self) -> List["KeyTree"]:
        return [] if self.is_leaf else list(self._children.values())

    def child(self, name) -> Optional["KeyTree"]:
        if self.is_leaf:
            return None
        return self._children.get(str(name))

    def child_names(self) -> List[str]:
        return [] if self.is_leaf else list(self._children)

    def renamed(self, key) -> "KeyTree":
        if key == self.key:
            return self
        return KeyTree(key, self.value, self._children, self.data)

    def with_data(self, **data) -> "KeyTree":
        return KeyTree(self.key, self.value, self._children, {**self.data, **data})

    def leaves(self, root=True) -> Iterator[Leaf]:
        """Yield ``Leaf(full_key, value, data)`` depth-first in insertion order.

        Each call returns a fresh generator, so the sequence can be restarted.

        Args:
            root: Whether full keys start with this node's own key (the locale for roots)
        """
        prefix = self.key if root else None
        for full_key, node in self._walk(prefix):
            if node.is_leaf:
                yield Leaf(full_key, node.value, node.data)

    def nodes(self, root=True) -> Iterator[Tuple[str, "KeyTree"]]:
        """Yield ``(full_key, node)`` for every node below this one, depth-first, parents first."""
        prefix = self.key if root else None
        for full_key, node in self._walk(prefix):
            if node is not self:
                yield full_key, node

    def _walk(self, full_key):
        yield full_key or "", self
        if self.is_leaf:
            return
        for name, child in self._children.items():
            yield from child._walk(join_key(full_key, name))

    def get(self, path) -> Optional["KeyTree"]:
        """Return the node at ``path`` relative to this node, or None if there is none."""
        node = self
        for segment in split_key(path):
            if node.is_leaf:
                return None
            node = node._children.get(segment)
            if node is None:
                return None
        return node

    def set(self, path, value, data=None) -> "KeyTree":
        """Return a copy with ``value`` stored at ``path``, creating intermediate nodes.

        ``value`` may be a scalar (stored as a leaf), a mapping or a KeyTree
        (stored as a subtree).

        Raises:
            TypeConflict: If the path runs through a leaf, or the new node would
                replace a leaf with a subtree or a subtree with a leaf
        """
        segments = split_key(path)
        if not segments:
            raise ValueError("Cannot set an empty key path")
        return self._set(segments, value, data, self.key)

    def _set(self, segments, value, data, full_key):
        if self.is_leaf:
            raise TypeConflict(full_key, "Cannot address a leaf as an internal node")
        name, rest = segments[0], segments[1:]
        child_key = join_key(full_key, name)
        existing = self._children.get(name)
        if rest:
            if existing is None:
                existing = KeyTree(name, children={})
            new_child = existing._set(rest, value, data, child_key)
        else:
            new_child = _to_node(name, value, data)
            if existing is not None and existing.is_leaf != new_child.is_leaf:
                if existing.is_leaf:
                    raise TypeConflict(child_key, "Cannot replace a leaf with a subtree")
                raise TypeConflict(child_key, "Cannot replace a subtree with a leaf")
        children = dict(self._children)
        children[name] = new_child
        return KeyTree(self.key, children=children, data=self.data)

    def merge(self, other: "KeyTree") -> "KeyTree":
        """Deep merge ``other`` into a copy of this tree.

        Leaves in ``other`` overwrite leaves at the same path, internal nodes are
        merged recursively. Where one side has a leaf and the other a subtree,
        ``other`` wins. The result keeps this node's key.
        """
        if self.is_leaf or other.is_leaf:
            return other.renamed(self.key)
        children = dict(self._children)
        for name, theirs in other._children.items():
            mine = children.get(name)
            children[name] = theirs if mine is None else mine.merge(theirs)
        return KeyTree(self.key, children=children, data={**self.data, **other.data})

    def except_keys(self, keys: Iterable[str]) -> "KeyTree":
        """Return a copy without the given (dotted) keys. Unknown keys are ignored."""
        tree = self
        for key in keys:
            segments = split_key(key)
            if segments:
                tree = tree._without(segments)
        return tree

    def _without(self, segments):
        if self.is_leaf or segments[0] not in self._children:
            return self
        name, rest = segments[0], segments[1:]
        children = dict(self._children)
        if rest:
            children[name] = children[name]._without(rest)
        else:
            del children[name]
        return KeyTree(self.key, children=children, data=self.data)

    def __eq__(self, other):
        if not isinstance(other, KeyTree):
            return NotImplemented
        return (self.key == other.key and self.value == other.value
                and self._children == other._children and self.data == other.data)

    __hash__ = None

    def __repr__(self):
        if self.is_leaf:
            return f"KeyTree({self.key!r}, value={self.value!r})"
        return f"KeyTree({self.key!r}, children={self.child_names()!r})"


def _to_node(name, value, data=None) -> KeyTree:
    if isinstance(value, KeyTree):
        node = value.renamed(name)
        return node.with_data(**data) if data else node
    if isinstance(value, Mapping):
        node = KeyTree.from_dict(value, name)
        return node.with_data(**data) if data else node
    return KeyTree(name, value=value, data=data)


class Forest:
    """An ordered set of independently rooted trees, keyed by their root (locale) name.

    Full keys passed to a forest start with the root name, e.g. ``"ar.plural_key"``.
    """

    def __init__(self, roots=None):
        self._roots: Dict[str, KeyTree] = {}
        for root in roots or []:
            if not root.key:
                raise ValueError("Forest roots must be named")
            if root.key in self._roots:
                raise ValueError(f"Duplicate root '{root.key}' in forest")
            if root.is_leaf:
                raise TypeConflict(root.key, "A forest root must be an internal node")
            self._roots[root.key] = root

    @classmethod
    def from_dict(cls, data: Mapping) -> "Forest":
        """Build a forest from ``{locale: {...}}``."""
        return cls(KeyTree.from_dict(value if value is not None else {}, locale)
                   for locale, value in data.items())

    def to_dict(self) -> dict:
        return {locale: root.to_dict() for locale, root in self._roots.items()}

    @property
    def roots(self) -> List[KeyTree]:
        return list(self._roots.values())

    @property
    def locales(self) -> List[str]:
        return list(self._roots)

    def root(self, locale) -> Optional[KeyTree]:
        return self._roots.get(locale)

    def __getitem__(self, locale) -> KeyTree:
        return self._roots[locale]

    def __contains__(self, locale):
        return locale in self._roots

    def __iter__(self):
        return iter(self._roots.values())

    def __len__(self):
        return len(self._roots)

    def __bool__(self):
        return bool(self._roots)

    def leaves(self) -> Iterator[Leaf]:
        for root in self._roots.values():
            yield from root.leaves()

    def get(self, full_key) -> Optional[KeyTree]:
        segments = split_key(full_key)
        if not segments or segments[0] not in self._roots:
            return None
        return self._roots[segments[0]].get(segments[1:])

    def set(self, full_key, value, data=None) -> "Forest":
        """Return a new forest with ``value`` stored at ``full_key``; the root is created if needed."""
        segments = split_key(full_key)
        if len(segments) < 2:
            raise ValueError(f"Forest keys need a root and a path: {full_key!r}")
        locale = segments[0]
        root = self._roots.get(locale) or KeyTree(locale, children={})
        return self.with_root(root.set(segments[1:], value, data))

    def with_root(self, root: KeyTree) -> "Forest":
        roots = dict(self._roots)
        roots[root.key] = root
        return Forest(roots.values())

    def merge(self, other: "Forest") -> "Forest":
        roots = dict(self._roots)
        for locale, theirs in other._roots.items():
            mine = roots.get(locale)
            roots[locale] = theirs if mine is None else mine.merge(theirs)
        return Forest(roots.values())

    def except_keys(self, full_keys: Iterable[str]) -> "Forest":
        roots = dict(self._roots)
        for full_key in full_keys:
            segments = split_key(full_key)
            if len(segments) < 2:
                roots.pop(full_key, None)
            elif segments[0] in roots:
                roots[segments[0]] = roots[segments[0]].except_keys([segments[1:]])
        return Forest(roots.values())

    def __eq__(self, other):
        if not isinstance(other, Forest):
            return NotImplemented
        return self._roots == other._roots

    __hash__ = None

    def __repr__(self):
        return f"Forest({self.locales!r})"
