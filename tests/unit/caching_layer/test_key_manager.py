"""
Unit Tests for the Key Manager

Determinism, key sensitivity, templates and content hashing.
"""

import hashlib

import orjson
import pytest

from readthrough.caching.descriptors import GenericInvocation, ServiceCallRequest, StructuredQueryRequest
from readthrough.caching.key_manager import KeyManager, lookup_path


@pytest.fixture
def key_manager():
    return KeyManager()


def fields(**overrides):
    base = {"tenant": "t1", "user": "alice", "locale": "en", "service": "Catalog", "method": "GET", "path": "/Books"}
    base.update(overrides)
    return base


@pytest.mark.unit
class TestDeterminism:
    def test_same_inputs_same_key(self, key_manager):
        request = ServiceCallRequest(path="/Books", params={"ID": 1})

        assert key_manager.create_key(request, fields()) == key_manager.create_key(request, fields())

    def test_payload_key_order_does_not_matter(self, key_manager):
        first = ServiceCallRequest(path="/Books", data={"a": 1, "b": {"x": 1, "y": 2}})
        second = ServiceCallRequest(path="/Books", data={"b": {"y": 2, "x": 1}, "a": 1})

        assert key_manager.create_content_hash(first) == key_manager.create_content_hash(second)

    def test_hash_is_md5_of_sorted_json(self, key_manager):
        request = ServiceCallRequest(path="/Books", data={"b": 2, "a": 1})
        expected = hashlib.md5(
            orjson.dumps(
                {"event": None, "data": {"a": 1, "b": 2}, "params": None, "query": None},
                option=orjson.OPT_SORT_KEYS,
            )
        ).hexdigest()

        assert key_manager.create_content_hash(request) == expected


@pytest.mark.unit
class TestKeySensitivity:
    @pytest.mark.parametrize(
        "field,value",
        [("tenant", "t2"), ("user", "bob"), ("locale", "de"), ("method", "HEAD"), ("service", "Other")],
    )
    def test_context_field_changes_key(self, key_manager, field, value):
        request = ServiceCallRequest(path="/Books")

        assert key_manager.create_key(request, fields()) != key_manager.create_key(request, fields(**{field: value}))

    def test_payload_changes_key(self, key_manager):
        first = ServiceCallRequest(path="/Books", params={"ID": 1})
        second = ServiceCallRequest(path="/Books", params={"ID": 2})

        assert key_manager.create_key(first, fields()) != key_manager.create_key(second, fields())

    def test_event_changes_key(self, key_manager):
        """Two bound operations on the same path are different calls."""
        first = ServiceCallRequest(method="GET", path="/Books(1)", event="addReview")
        second = ServiceCallRequest(method="GET", path="/Books(1)", event="removeReview")

        assert key_manager.create_content_hash(first) != key_manager.create_content_hash(second)
        assert key_manager.create_key(first, fields(path="/Books(1)")) != key_manager.create_key(
            second, fields(path="/Books(1)")
        )

    def test_segments_with_separator_do_not_collide(self, key_manager):
        request = ServiceCallRequest(path="/Books")
        first = key_manager.create_key(request, fields(tenant="a:b", user=""))
        second = key_manager.create_key(request, fields(tenant="a", user="b"))

        assert first != second


@pytest.mark.unit
class TestDefaultKeyFormat:
    def test_layout(self, key_manager):
        request = ServiceCallRequest(path="/Books")
        content_hash = key_manager.create_content_hash(request)

        key = key_manager.create_key(request, fields())

        assert key == f"t1:alice:en:Catalog:GET:/Books:{content_hash}"

    def test_missing_fields_become_empty_segments(self, key_manager):
        request = ServiceCallRequest(path="/Books")
        content_hash = key_manager.create_content_hash(request)

        key = key_manager.create_key(request, {"tenant": "t1", "method": "GET", "path": "/Books"})

        assert key == f"t1::::GET:/Books:{content_hash}"

    def test_no_context_at_all(self, key_manager):
        key = key_manager.create_key(ServiceCallRequest(), None)
        assert key.startswith("::::::")


@pytest.mark.unit
class TestTemplates:
    def test_tenant_and_hash(self, key_manager):
        request = ServiceCallRequest(path="/Books")
        content_hash = key_manager.create_content_hash(request)

        assert key_manager.create_key(request, fields(), "{tenant}:{hash}") == f"t1:{content_hash}"

    def test_dotted_lookup(self, key_manager):
        request = ServiceCallRequest(path="/Books", params={"ID": 42})

        key = key_manager.create_key(request, fields(params={"ID": 42}), "books:{params.ID}")

        assert key == "books:42"

    def test_unknown_placeholder_is_empty(self, key_manager):
        request = ServiceCallRequest(path="/Books")

        assert key_manager.create_key(request, fields(), "{tenant}:{nope}:x") == "t1::x"

    def test_template_can_collapse_user(self, key_manager):
        request = ServiceCallRequest(path="/Books")

        alice = key_manager.create_key(request, fields(user="alice"), "{tenant}:{path}")
        bob = key_manager.create_key(request, fields(user="bob"), "{tenant}:{path}")

        assert alice == bob == "t1:/Books"

    def test_constant_template(self, key_manager):
        assert key_manager.create_key(ServiceCallRequest(), fields(), "catalog") == "catalog"


@pytest.mark.unit
class TestContentHash:
    def test_query_payload(self, key_manager):
        first = StructuredQueryRequest(target="Books", where={"ID": 1})
        second = StructuredQueryRequest(target="Books", where={"ID": 2})

        assert key_manager.create_content_hash(first) != key_manager.create_content_hash(second)

    def test_invocation_args(self, key_manager):
        first = GenericInvocation(name="f", args=(1, 2))
        second = GenericInvocation(name="f", args=(2, 1))

        assert key_manager.create_content_hash(first) != key_manager.create_content_hash(second)

    def test_sets_hash_order_independent(self, key_manager):
        first = GenericInvocation(name="f", args=({3, 1, 2},))
        second = GenericInvocation(name="f", args=({2, 3, 1},))

        assert key_manager.create_content_hash(first) == key_manager.create_content_hash(second)

    def test_non_serializable_values_never_raise(self, key_manager):
        class Opaque:
            def __str__(self):
                return "opaque"

        digest = key_manager.create_content_hash(GenericInvocation(name="f", args=(Opaque(),)))

        assert len(digest) == 32

    def test_plain_objects_are_hashed_as_is(self, key_manager):
        assert key_manager.create_content_hash({"a": 1}) == key_manager.create_content_hash({"a": 1})


@pytest.mark.unit
class TestLookupPath:
    def test_nested_mapping(self):
        assert lookup_path({"a": {"b": 1}}, "a.b") == 1

    def test_list_index(self):
        assert lookup_path({"rows": [{"ID": 5}]}, "rows.0.ID") == 5

    def test_missing_segment(self):
        assert lookup_path({"a": {}}, "a.b.c") is None

    def test_attribute_access(self):
        request = ServiceCallRequest(path="/Books")
        assert lookup_path({"request": request}, "request.path") == "/Books"
