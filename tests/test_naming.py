"""Tests for the naming module."""

import pytest

from wsdl2api.naming import exported_name, field_name, normalize, python_name, strip_prefix, unique_name


class TestStripPrefix:
    def test_prefixed(self):
        assert strip_prefix("tns:Add") == "Add"

    def test_unprefixed(self):
        assert strip_prefix("Add") == "Add"

    def test_only_last_colon_counts(self):
        assert strip_prefix("a:b:c") == "c"


class TestNormalize:
    """Exported, field and snake forms of WSDL/XSD names."""

    def test_simple_name(self):
        ident = normalize("Add")
        assert (ident.exported, ident.field, ident.snake) == ("Add", "add", "add")

    def test_camel_case_keeps_inner_casing(self):
        ident = normalize("intA")
        assert ident.exported == "IntA"
        assert ident.field == "intA"
        assert ident.snake == "int_a"

    def test_separators(self):
        ident = normalize("get-user_info.v2")
        assert ident.exported == "GetUserInfoV2"
        assert ident.field == "getUserInfoV2"
        assert ident.snake == "get_user_info_v2"

    def test_spaces(self):
        assert normalize("number to words").exported == "NumberToWords"

    def test_strips_namespace_prefix(self):
        assert normalize("tns:AddResponse").exported == "AddResponse"

    def test_empty_input_gives_empty_output(self):
        ident = normalize("")
        assert (ident.exported, ident.field, ident.snake) == ("", "", "")

    def test_only_separators_gives_empty_output(self):
        assert normalize("_-.").exported == ""

    def test_leading_digit(self):
        ident = normalize("2ndLine")
        assert ident.exported == "_2ndLine"
        assert ident.exported.isidentifier()
        assert ident.field.isidentifier()

    def test_invalid_characters_dropped(self):
        assert normalize("price$usd").exported == "Priceusd"

    def test_raw_preserved(self):
        assert normalize("tns:intA").raw == "tns:intA"

    @pytest.mark.parametrize("raw", [
        "Add", "intA", "AddResult", "get-user_info.v2", "tns:NumberToWords",
        "home_address", "employee-id", "2ndLine", "a b c", "XMLHttpRequest",
    ])
    def test_idempotent(self, raw):
        """Normalizing an exported form again changes nothing."""
        once = normalize(raw).exported
        assert normalize(once).exported == once

    def test_deterministic(self):
        assert normalize("home_address") == normalize("home_address")


class TestHelpers:
    def test_exported_name(self):
        assert exported_name("tns:home_address") == "HomeAddress"

    def test_field_name(self):
        assert field_name("AddResult") == "addResult"

    def test_python_name_keyword(self):
        assert python_name("class") == "class_"
        assert python_name("None") == "None_"

    def test_python_name_soft_keyword_untouched(self):
        assert python_name("type") == "type"
        assert python_name("match") == "match"

    def test_python_name_plain(self):
        assert python_name("add") == "add"

    def test_unique_name_suffixes(self):
        taken = {"add"}
        assert unique_name("add", taken) == "add_2"
        assert unique_name("add", taken) == "add_3"
        assert unique_name("sub", taken) == "sub"
        assert taken == {"add", "add_2", "add_3", "sub"}
