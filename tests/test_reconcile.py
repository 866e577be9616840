"""Tests for array union helpers."""

from dictionary_editor import union, union_references, union_values
from dictionary_editor.reconcile import has_duplicates


class TestUnion:

    def test_first_seen_order(self):
        assert union(["b", "a"], ["c", "a", "b"]) == ["b", "a", "c"]

    def test_duplicates_within_one_array(self):
        assert union(["a", "a", "b", "a"]) == ["a", "b"]

    def test_none_inputs_are_empty(self):
        assert union(None, ["a"], None) == ["a"]
        assert union() == []

    def test_idempotent(self):
        a, b = ["x", "y"], ["y", "z"]
        assert union(union(a, b), b) == union(a, b)

    def test_key(self):
        assert union(["Food", "food", "FOOD"], key=str.lower) == ["Food"]


class TestUnionValues:

    def test_exact_equality(self):
        assert union_values(["food"], ["Food", "food"]) == ["food", "Food"]

    def test_empty_strings_kept_once(self):
        assert union_values(["", ""], [""]) == [""]


class TestUnionReferences:

    def test_compares_by_string_form(self):
        class Ref:
            def __init__(self, value):
                self.value = value

            def __str__(self):
                return self.value

        refs = union_references(["a" * 24], [Ref("a" * 24), Ref("b" * 24)])
        assert refs == ["a" * 24, "b" * 24]

    def test_returns_strings(self):
        assert union_references([1, "1", 2]) == ["1", "2"]


class TestHasDuplicates:

    def test_no_duplicates(self):
        assert not has_duplicates(["a", "b"])
        assert not has_duplicates([])

    def test_duplicates(self):
        assert has_duplicates(["a", "b", "a"])

    def test_duplicates_by_key(self):
        assert has_duplicates([1, "1"], key=str)
