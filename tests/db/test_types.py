"""Tests for leadtrace.db.types.JSONType custom SQLAlchemy column type."""

import json

from leadtrace.db.types import JSONType


# The dialect parameter is not used by JSONType, so None is a valid stand-in.
DIALECT = None


class TestJSONTypeBindParam:
    """Tests for JSONType.process_bind_param (Python -> DB)."""

    def setup_method(self):
        self.jtype = JSONType()

    def test_record_serialised_to_json_string(self):
        value = {"visitorId": "v_1", "sessions": ["a", "b"], "identified": False}
        result = self.jtype.process_bind_param(value, DIALECT)
        assert isinstance(result, str)
        assert json.loads(result) == value

    def test_serialised_compactly(self):
        result = self.jtype.process_bind_param({"a": 1, "b": [1, 2]}, DIALECT)
        assert result == '{"a":1,"b":[1,2]}'

    def test_none_returns_none(self):
        assert self.jtype.process_bind_param(None, DIALECT) is None

    def test_empty_dict_serialised(self):
        assert self.jtype.process_bind_param({}, DIALECT) == "{}"

    def test_non_ascii_text_kept_unescaped(self):
        result = self.jtype.process_bind_param({"city": "München"}, DIALECT)
        assert result == '{"city":"München"}'


class TestJSONTypeResultValue:
    """Tests for JSONType.process_result_value (DB -> Python)."""

    def setup_method(self):
        self.jtype = JSONType()

    def test_json_string_deserialised_to_dict(self):
        raw = '{"linkId": "tl_1", "clicks": 3}'
        assert self.jtype.process_result_value(raw, DIALECT) == {"linkId": "tl_1", "clicks": 3}

    def test_none_returns_none(self):
        assert self.jtype.process_result_value(None, DIALECT) is None

    def test_nested_roundtrip(self):
        original = {"geo": {"city": "Berlin", "lat": 52.52}, "siteIds": ["s_1"]}
        bound = self.jtype.process_bind_param(original, DIALECT)
        assert self.jtype.process_result_value(bound, DIALECT) == original
