import pytest

from i18n_tasks.errors import TypeConflict
from i18n_tasks.key_tree import Forest, KeyTree, split_key


class TestKeyTree:
    """Tests for the KeyTree node structure."""

    def test_from_dict_round_trips_to_dict(self, base_keys):
        tree = KeyTree.from_dict(base_keys, "en")
        assert tree.key == "en"
        assert tree.to_dict() == base_keys

    def test_non_string_keys_are_stringified(self):
        tree = KeyTree.from_dict({True: "yes", 2: {"a": "b"}}, "en")
        assert tree.child_names() == ["True", "2"]
        assert tree.get("2.a").value == "b"

    def test_leaves_are_depth_first_in_insertion_order(self, base_tree):
        keys = [leaf.full_key for leaf in base_tree.leaves()]
        assert keys == [
            "en.regular_key",
            "en.plural_key.one",
            "en.plural_key.other",
            "en.not_really_plural.one",
            "en.not_really_plural.green",
            "en.nested.plural_key.zero",
            "en.nested.plural_key.one",
            "en.nested.plural_key.other",
            "en.ignored_pattern.plural_key.other",
        ]

    def test_leaves_can_be_restarted(self, base_tree):
        first = list(base_tree.leaves())
        second = list(base_tree.leaves())
        assert first == second
        assert len(first) == 9

    def test_leaves_without_root_key(self, base_tree):
        keys = [leaf.full_key for leaf in base_tree.leaves(root=False)]
        assert keys[0] == "regular_key"
        assert keys[-1] == "ignored_pattern.plural_key.other"

    def test_leaf_carries_value_and_data(self):
        tree = KeyTree("ar", children={}).set("plural_key", None, data={"missing_keys": ["zero"]})
        leaf = next(tree.leaves())
        assert leaf.full_key == "ar.plural_key"
        assert leaf.value is None
        assert leaf.data == {"missing_keys": ["zero"]}

    def test_get(self, base_tree):
        assert base_tree.get("nested.plural_key.zero").value == "none"
        assert base_tree.get("nested").is_leaf is False
        assert base_tree.get("nested.unknown") is None
        assert base_tree.get("regular_key.below_leaf") is None
        assert base_tree.get("") is base_tree

    def test_set_creates_intermediate_nodes(self, base_tree):
        updated = base_tree.set("a.b.c", "value")
        assert updated.get("a.b.c").value == "value"
        assert updated.get("a.b").is_leaf is False
        assert base_tree.get("a") is None

    def test_set_does_not_mutate_input(self, base_tree, base_keys):
        base_tree.set("plural_key.few", "few")
        assert base_tree.to_dict() == base_keys

    def test_set_replaces_leaf(self, base_tree):
        updated = base_tree.set("regular_key", "b")
        assert updated.get("regular_key").value == "b"

    def test_set_accepts_mapping_as_subtree(self, base_tree):
        updated = base_tree.set("new_group", {"one": "x", "other": "y"})
        assert updated.get("new_group.other").value == "y"

    def test_set_through_leaf_raises_type_conflict(self, base_tree):
        with pytest.raises(TypeConflict):
            base_tree.set("regular_key.child", "x")

    def test_set_subtree_over_leaf_raises_type_conflict(self, base_tree):
        with pytest.raises(TypeConflict):
            base_tree.set("regular_key", {"one": "x"})

    def test_set_leaf_over_subtree_raises_type_conflict(self, base_tree):
        with pytest.raises(TypeConflict):
            base_tree.set("nested", "flat")

    def test_node_cannot_be_leaf_and_internal(self):
        with pytest.raises(TypeConflict):
            KeyTree("x", value="a", children=[])

    def test_duplicate_segments_are_rejected(self):
        with pytest.raises(ValueError):
            KeyTree("x", children=[KeyTree("a", value=1), KeyTree("a", value=2)])

    def test_merge_overwrites_leaves_and_merges_subtrees(self, base_tree):
        other = KeyTree.from_dict({"regular_key": "b", "nested": {"plural_key": {"many": "m"}}}, "en")
        merged = base_tree.merge(other)
        assert merged.get("regular_key").value == "b"
        assert merged.get("nested.plural_key").child_names() == ["zero", "one", "other", "many"]
        assert base_tree.get("nested.plural_key.many") is None
        assert other.get("nested.plural_key.zero") is None

    def test_merge_prefers_other_on_shape_mismatch(self, base_tree):
        other = KeyTree.from_dict({"plural_key": "%{count}"}, "ru")
        merged = base_tree.merge(other)
        assert merged.key == "en"
        assert merged.get("plural_key").value == "%{count}"

    def test_except_keys(self, base_tree):
        trimmed = base_tree.except_keys(["plural_key", "nested.plural_key.zero", "unknown.key"])
        assert trimmed.get("plural_key") is None
        assert trimmed.get("nested.plural_key").child_names() == ["one", "other"]
        assert base_tree.get("plural_key") is not None

    def test_equality_ignores_order(self):
        a = KeyTree.from_dict({"one": "1", "other": "2"}, "en")
        b = KeyTree.from_dict({"other": "2", "one": "1"}, "en")
        assert a == b
        assert a != KeyTree.from_dict({"one": "1"}, "en")


class TestForest:
    """Tests for Forest, the per-locale collection of trees."""

    def test_from_dict_keeps_root_order(self):
        forest = Forest.from_dict({"ru": {"a": "1"}, "ar": {"b": "2"}})
        assert forest.locales == ["ru", "ar"]
        assert forest.to_dict() == {"ru": {"a": "1"}, "ar": {"b": "2"}}

    def test_empty_forest_is_falsy(self):
        assert not Forest()
        assert Forest.from_dict({"ru": {}})

    def test_leaves_span_roots(self):
        forest = Forest.from_dict({"ru": {"a": "1"}, "ar": {"b": {"c": "2"}}})
        assert [leaf.full_key for leaf in forest.leaves()] == ["ru.a", "ar.b.c"]

    def test_get_and_set_use_locale_qualified_keys(self):
        forest = Forest().set("ar.nested.plural_key", None, data={"missing_keys": ["few"]})
        assert forest.locales == ["ar"]
        assert forest.get("ar.nested.plural_key").data == {"missing_keys": ["few"]}
        assert forest.get("ru.nested") is None

    def test_set_requires_root_and_path(self):
        with pytest.raises(ValueError):
            Forest().set("ar", "x")

    def test_merge(self):
        a = Forest.from_dict({"ru": {"a": "1"}})
        b = Forest.from_dict({"ru": {"b": "2"}, "ar": {"c": "3"}})
        assert a.merge(b).to_dict() == {"ru": {"a": "1", "b": "2"}, "ar": {"c": "3"}}
        assert a.to_dict() == {"ru": {"a": "1"}}

    def test_except_keys(self):
        forest = Forest.from_dict({"ru": {"a": "1", "b": "2"}, "ar": {"c": "3"}})
        assert forest.except_keys(["ru.a", "ar"]).to_dict() == {"ru": {"b": "2"}}

    def test_leaf_root_is_rejected(self):
        with pytest.raises(TypeConflict):
            Forest.from_dict({"ru": "not a mapping"})


def test_split_key():
    assert split_key("a.b.c") == ["a", "b", "c"]
    assert split_key(["a", 1]) == ["a", "1"]
    assert split_key("") == []
