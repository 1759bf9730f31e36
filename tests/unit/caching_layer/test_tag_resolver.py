"""
Unit Tests for the Tag Resolver

Every specification form, and tolerance towards malformed specs.
"""

import pytest

from readthrough.caching.tag_resolver import TagResolver

BOOKS = [{"ID": 1, "title": "X", "author_ID": 7}, {"ID": 2, "title": "Y", "author_ID": 7}]


@pytest.fixture
def resolver():
    return TagResolver()


@pytest.mark.unit
class TestLiteralTags:
    def test_none_spec(self, resolver):
        assert resolver.resolve_tags(None, BOOKS, {}) == []

    def test_literal_list(self, resolver):
        assert resolver.resolve_tags(["books", "catalog"], BOOKS, {}) == ["books", "catalog"]

    def test_single_string(self, resolver):
        assert resolver.resolve_tags("books", BOOKS, {}) == ["books"]

    def test_duplicates_removed_in_first_seen_order(self, resolver):
        assert resolver.resolve_tags(["b", "a", "b"], None, {}) == ["b", "a"]

    def test_value_rule(self, resolver):
        assert resolver.resolve_tags([{"value": "books"}], None, {}) == ["books"]


@pytest.mark.unit
class TestDataRules:
    def test_field_of_object_response(self, resolver):
        tags = resolver.resolve_tags([{"data": "ID", "prefix": "book-"}], {"ID": 1, "title": "X"}, {})
        assert tags == ["book-1"]

    def test_field_per_row(self, resolver):
        assert resolver.resolve_tags([{"data": "ID", "prefix": "book-"}], BOOKS, {}) == ["book-1", "book-2"]

    def test_combined_fields_with_separator(self, resolver):
        tags = resolver.resolve_tags([{"data": ["ID", "title"], "separator": "-"}], BOOKS, {})
        assert tags == ["1-X", "2-Y"]

    def test_suffix(self, resolver):
        assert resolver.resolve_tags([{"data": "ID", "suffix": "!"}], {"ID": 3}, {}) == ["3!"]

    def test_duplicate_row_values_collapse(self, resolver):
        assert resolver.resolve_tags([{"data": "author_ID", "prefix": "author-"}], BOOKS, {}) == ["author-7"]

    def test_missing_field_is_skipped(self, resolver):
        tags = resolver.resolve_tags(["books", {"data": "missing"}], {"ID": 1}, {})
        assert tags == ["books"]

    def test_nested_path(self, resolver):
        response = {"author": {"name": "Poe"}}
        assert resolver.resolve_tags([{"data": "author.name"}], response, {}) == ["Poe"]


@pytest.mark.unit
class TestTemplates:
    def test_context_template_rule(self, resolver):
        assert resolver.resolve_tags([{"template": "tenant-{tenant}"}], None, {"tenant": "t1"}) == ["tenant-t1"]

    def test_template_string(self, resolver):
        assert resolver.resolve_tags(["tenant-{tenant}"], None, {"tenant": "t1"}) == ["tenant-t1"]

    def test_data_placeholder_per_row(self, resolver):
        tags = resolver.resolve_tags(["{tenant}-book-{data.ID}"], BOOKS, {"tenant": "t1"})
        assert tags == ["t1-book-1", "t1-book-2"]

    def test_template_with_missing_field_is_dropped(self, resolver):
        assert resolver.resolve_tags(["user-{user}"], None, {"tenant": "t1"}) == []


@pytest.mark.unit
class TestCallables:
    def test_callable_spec(self, resolver):
        spec = lambda response, ctx: [f"book-{row['ID']}" for row in response]  # noqa: E731
        assert resolver.resolve_tags(spec, BOOKS, {}) == ["book-1", "book-2"]

    def test_callable_receives_context(self, resolver):
        assert resolver.resolve_tags(lambda r, ctx: [ctx["tenant"]], None, {"tenant": "t1"}) == ["t1"]

    def test_failing_callable_yields_nothing(self, resolver):
        def broken(response, ctx):
            raise KeyError("ID")

        assert resolver.resolve_tags(broken, {}, {}) == []

    def test_callable_returning_string(self, resolver):
        assert resolver.resolve_tags(lambda r, c: "books", None, {}) == ["books"]

    def test_callable_rule_inside_list(self, resolver):
        assert resolver.resolve_tags(["a", lambda r, c: ["b"]], None, {}) == ["a", "b"]


@pytest.mark.unit
class TestMalformedSpecs:
    @pytest.mark.parametrize("spec", [42, 3.5, object()])
    def test_non_iterable_spec(self, resolver, spec):
        assert resolver.resolve_tags(spec, BOOKS, {}) == []

    def test_unknown_rule_shapes(self, resolver):
        spec = ["ok", {"unknown": 1}, 42, None, {"data": 5}, {"template": 7}, ""]
        assert resolver.resolve_tags(spec, BOOKS, {}) == ["ok"]
