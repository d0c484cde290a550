"""
Tests for odata_node.odata.query.
"""

import pytest

from odata_node.core.errors import ConfigurationError
from odata_node.odata.query import (
    QueryOptions,
    build_query,
    compose_query,
    encode_query,
    parse_json_text,
)


class TestParseJsonText:
    """Tests for parse_json_text."""

    def test_empty_text_is_empty_mapping(self):
        assert parse_json_text("", "query") == {}
        assert parse_json_text("   ", "query") == {}
        assert parse_json_text(None, "data") == {}

    def test_custom_default(self):
        assert parse_json_text("", "data", default=None) is None

    def test_parses_object(self):
        assert parse_json_text('{"UserName": "newuser"}', "data") == {"UserName": "newuser"}

    def test_malformed_names_field(self):
        with pytest.raises(ConfigurationError, match="Invalid data") as exc:
            parse_json_text("{not json", "data")
        assert exc.value.field == "data"


class TestBuildQuery:
    """Tests for build_query."""

    def test_raw_query_overrides_discrete_fields(self):
        q = build_query('{"$top": 5}', QueryOptions(filter="FirstName eq 'Scott'", select="A"))
        assert q == {"$top": 5}

    def test_raw_query_returned_verbatim(self):
        raw = '{"$filter": "FirstName eq \'John\'", "$select": "FirstName, LastName"}'
        q = build_query(raw, QueryOptions(top=3))
        # raw values are not whitespace-stripped
        assert q == {"$filter": "FirstName eq 'John'", "$select": "FirstName, LastName"}

    def test_empty_raw_query_uses_discrete_fields(self):
        q = build_query("{}", QueryOptions(filter="FirstName eq 'Scott'"))
        assert q == {"$filter": "FirstName eq 'Scott'"}

    def test_accepts_parsed_mapping(self):
        assert build_query({"$skip": 2}) == {"$skip": 2}

    def test_malformed_raw_query(self):
        with pytest.raises(ConfigurationError, match="Invalid query"):
            build_query('{"$top": ', QueryOptions())

    def test_raw_query_must_be_object(self):
        with pytest.raises(ConfigurationError):
            build_query("[1, 2]")
        with pytest.raises(ConfigurationError):
            build_query("0", QueryOptions(filter="A eq 1"))

    @pytest.mark.parametrize("raw", ["null", "[]", "{}", "  "])
    def test_empty_json_raw_query_composes(self, raw):
        assert build_query(raw, QueryOptions(filter="A eq 1")) == {"$filter": "A eq 1"}

    def test_no_options_gives_empty_descriptor(self):
        assert build_query("") == {}


class TestComposeQuery:
    """Tests for discrete option composition."""

    def test_only_filter(self):
        assert compose_query(QueryOptions(filter="FirstName eq 'Scott'")) == {
            "$filter": "FirstName eq 'Scott'"
        }

    def test_whitespace_stripped_from_select_and_expand(self):
        q = compose_query(QueryOptions(select=" FirstName , LastName ", expand="Friends, Trips"))
        assert q["$select"] == "FirstName,LastName"
        assert q["$expand"] == "Friends,Trips"

    def test_filter_and_orderby_keep_whitespace(self):
        q = compose_query(QueryOptions(filter="Age gt 3", orderby="LastName desc"))
        assert q == {"$filter": "Age gt 3", "$orderby": "LastName desc"}

    def test_zero_top_and_skip_are_defined(self):
        q = compose_query(QueryOptions(top=0, skip=0))
        assert q == {"$top": 0, "$skip": 0}

    def test_unset_numbers_are_omitted(self):
        assert compose_query(QueryOptions(top=None, skip=None)) == {}

    def test_count_only_when_explicitly_set(self):
        assert "$count" not in compose_query(QueryOptions())
        assert compose_query(QueryOptions(count=False)) == {"$count": False}
        assert compose_query(QueryOptions(count=True)) == {"$count": True}

    def test_all_fields(self):
        q = compose_query(QueryOptions(
            select="A,B", filter="A eq 1", orderby="B", expand="C",
            top=10, skip=5, count=True,
        ))
        assert set(q) == {"$select", "$filter", "$orderby", "$expand", "$top", "$skip", "$count"}


class TestEncodeQuery:
    """Tests for the query string wire format."""

    def test_filter_encoding(self):
        assert encode_query({"$filter": "FirstName eq 'Scott'"}) == (
            "$filter=FirstName%20eq%20%27Scott%27"
        )

    def test_keys_verbatim_and_values_stringified(self):
        qs = encode_query({"$top": 5, "$count": True, "$select": "A,B"})
        assert qs == "$top=5&$count=true&$select=A,B"

    def test_empty(self):
        assert encode_query({}) == ""
