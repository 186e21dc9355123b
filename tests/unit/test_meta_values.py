import pytest

from duplicate_post.domain.meta import is_serialized, maybe_deserialize, serialize_meta_value


class TestSerializeMetaValue:
    def test_strings_stored_verbatim(self) -> None:
        assert serialize_meta_value("red") == "red"
        assert serialize_meta_value("") == ""

    def test_scalars(self) -> None:
        assert serialize_meta_value(5) == "5"
        assert serialize_meta_value(1.5) == "1.5"
        assert serialize_meta_value(True) == "1"
        assert serialize_meta_value(False) == ""
        assert serialize_meta_value(None) is None

    def test_containers_compact_json(self) -> None:
        assert serialize_meta_value({"a": [1, 2]}) == '{"a":[1,2]}'
        assert serialize_meta_value(["x"]) == '["x"]'


class TestMaybeDeserialize:
    @pytest.mark.parametrize("raw", ["red", "", "5", "{not json}", "[", None, 7])
    def test_passthrough(self, raw: object) -> None:
        assert maybe_deserialize(raw) == raw

    def test_decodes_containers(self) -> None:
        assert maybe_deserialize('{"a":[1,2]}') == {"a": [1, 2]}
        assert maybe_deserialize(" [1, 2] ") == [1, 2]

    def test_is_serialized(self) -> None:
        assert is_serialized("{}")
        assert not is_serialized("plain")
        assert not is_serialized(None)
