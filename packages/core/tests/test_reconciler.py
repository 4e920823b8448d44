"""Tests for reconciliation against attribute schemas."""

from __future__ import annotations

import pytest
from importwright.errors import MissingRequiredAttribute, TypeMismatch
from importwright.reconciler import coerce, reconcile, sensitive_paths
from importwright.spec import AttributeSchema, AttributeSpec, Expression, TypeExpr, parse_type


def _schema(*attrs: AttributeSpec) -> AttributeSchema:
    return AttributeSchema(resource_type="x_thing", attributes=list(attrs))


class TestScalars:
    def test_output_follows_schema_order(self, registry, bucket_attrs):
        result = reconcile(registry.lookup("aws_s3_bucket"), bucket_attrs)
        schema_order = [n for n in registry.lookup("aws_s3_bucket").names() if n in result]
        assert list(result) == schema_order

    def test_undeclared_attributes_dropped(self, registry, bucket_attrs):
        result = reconcile(registry.lookup("aws_s3_bucket"), bucket_attrs)
        assert "acceleration_status" not in result
        assert "id" not in result

    def test_string_bool_coerced(self, registry, db_attrs):
        result = reconcile(registry.lookup("aws_db_instance"), db_attrs)
        assert result["storage_encrypted"] is True

    def test_numeric_string_coerced_in_nested_block(self, registry, security_group_attrs):
        result = reconcile(registry.lookup("aws_security_group"), security_group_attrs)
        assert result["ingress"][1]["from_port"] == 80

    def test_none_counts_as_absent(self, registry, security_group_attrs):
        result = reconcile(registry.lookup("aws_security_group"), security_group_attrs)
        assert "tags" not in result

    @pytest.mark.parametrize(
        "type_expr,value,expected",
        [
            ("string", 5, "5"),
            ("string", True, "true"),
            ("number", "1.5", 1.5),
            ("number", " 42 ", 42),
            ("bool", "FALSE", False),
            ("list(number)", ["1", 2], [1, 2]),
            ("set(string)", ["b", "a", "b"], ["a", "b"]),
            ("map(number)", {"b": "2", "a": 1}, {"a": 1, "b": 2}),
            ("any", {"x": [1]}, {"x": [1]}),
        ],
    )
    def test_coercions(self, type_expr, value, expected):
        assert coerce(value, parse_type(type_expr), "attr") == expected

    def test_map_keys_sorted(self):
        result = coerce({"z": "1", "a": "2"}, parse_type("map(string)"), "tags")
        assert list(result) == ["a", "z"]

    @pytest.mark.parametrize(
        "type_expr,value",
        [
            ("number", True),
            ("number", "twelve"),
            ("bool", "yes"),
            ("bool", 1),
            ("string", {"a": 1}),
            ("list(string)", "a,b"),
            ("map(string)", ["a"]),
        ],
    )
    def test_incompatible_values_raise(self, type_expr, value):
        with pytest.raises(TypeMismatch):
            coerce(value, parse_type(type_expr), "attr")

    @pytest.mark.parametrize("value", ["NaN", "inf", "-Infinity", " nan ", float("nan"), float("inf")])
    def test_non_finite_numbers_rejected(self, value):
        with pytest.raises(TypeMismatch, match="non-finite"):
            coerce(value, parse_type("number"), "size")

    def test_non_finite_number_inside_collection(self):
        with pytest.raises(TypeMismatch) as exc_info:
            coerce(["1", "inf"], parse_type("list(number)"), "ports")
        assert exc_info.value.attribute == "ports[1]"

    def test_collection_without_element_type(self):
        with pytest.raises(TypeMismatch, match="without an element type"):
            coerce(["a"], TypeExpr("list"), "names")

    def test_type_mismatch_names_attribute_path(self, registry, security_group_attrs):
        security_group_attrs["ingress"][1]["to_port"] = "eighty"
        with pytest.raises(TypeMismatch) as exc_info:
            reconcile(registry.lookup("aws_security_group"), security_group_attrs)
        assert exc_info.value.attribute == "ingress[1].to_port"
        assert "ingress[1].to_port" in str(exc_info.value)

    def test_expression_passes_through(self):
        schema = _schema(AttributeSpec(name="password", sensitive=True))
        result = reconcile(schema, {"password": Expression("var.pw")})
        assert result["password"] == Expression("var.pw")


class TestRequiredAndOptional:
    def test_missing_required_names_attribute(self, registry, bucket_attrs):
        del bucket_attrs["bucket"]
        with pytest.raises(MissingRequiredAttribute) as exc_info:
            reconcile(registry.lookup("aws_s3_bucket"), bucket_attrs)
        assert exc_info.value.attribute == "bucket"

    def test_missing_required_in_nested_block(self, registry, security_group_attrs):
        del security_group_attrs["ingress"][0]["protocol"]
        with pytest.raises(MissingRequiredAttribute) as exc_info:
            reconcile(registry.lookup("aws_security_group"), security_group_attrs)
        assert exc_info.value.attribute == "ingress[0].protocol"

    def test_absent_optional_omitted_not_defaulted(self, registry):
        result = reconcile(registry.lookup("aws_s3_bucket"), {"bucket": "b"})
        assert result == {"bucket": "b"}

    def test_required_block_missing(self):
        schema = _schema(
            AttributeSpec(name="rule", type="block", required=True, attributes=[AttributeSpec(name="x")])
        )
        with pytest.raises(MissingRequiredAttribute, match="rule"):
            reconcile(schema, {"rule": []})


class TestComputed:
    def test_computed_only_taken_verbatim(self, registry, db_attrs):
        db_attrs["endpoint"] = 12345  # wrong type on purpose; computed-only is never coerced
        result = reconcile(registry.lookup("aws_db_instance"), db_attrs)
        assert result["endpoint"] == 12345

    def test_computed_only_absent_is_not_defaulted(self):
        schema = _schema(AttributeSpec(name="arn", computed=True, default="arn:default"))
        assert reconcile(schema, {}) == {}

    def test_optional_computed_is_coerced(self, registry, db_attrs):
        db_attrs["engine_version"] = 15
        result = reconcile(registry.lookup("aws_db_instance"), db_attrs)
        assert result["engine_version"] == "15"


class TestNestedBlocks:
    def test_repeated_blocks_keep_fetch_order(self, registry, security_group_attrs):
        result = reconcile(registry.lookup("aws_security_group"), security_group_attrs)
        assert [b["from_port"] for b in result["ingress"]] == [443, 80]

    def test_empty_optional_block_omitted(self, registry, security_group_attrs):
        result = reconcile(registry.lookup("aws_security_group"), security_group_attrs)
        assert "egress" not in result

    def test_single_block_from_one_element_list(self, registry, bucket_attrs):
        result = reconcile(registry.lookup("aws_s3_bucket"), bucket_attrs)
        assert result["versioning"] == {"enabled": True, "mfa_delete": False}

    def test_single_block_with_two_elements_rejected(self, registry, bucket_attrs):
        bucket_attrs["versioning"] = [{"enabled": True}, {"enabled": False}]
        with pytest.raises(TypeMismatch, match="versioning"):
            reconcile(registry.lookup("aws_s3_bucket"), bucket_attrs)

    def test_block_of_wrong_shape(self, registry, security_group_attrs):
        security_group_attrs["ingress"] = "all"
        with pytest.raises(TypeMismatch, match="ingress"):
            reconcile(registry.lookup("aws_security_group"), security_group_attrs)


class TestSensitive:
    def test_sensitive_carried_unredacted(self, registry, db_attrs):
        result = reconcile(registry.lookup("aws_db_instance"), db_attrs)
        assert result["password"] == "hunter2"

    def test_sensitive_paths(self, registry, db_attrs):
        schema = registry.lookup("aws_db_instance")
        assert sensitive_paths(schema, reconcile(schema, db_attrs)) == ["password"]

    def test_sensitive_paths_in_blocks(self):
        schema = _schema(
            AttributeSpec(
                name="auth",
                type="block",
                attributes=[AttributeSpec(name="user"), AttributeSpec(name="token", sensitive=True)],
            )
        )
        attrs = reconcile(schema, {"auth": [{"user": "a", "token": "t"}, {"user": "b"}]})
        assert sensitive_paths(schema, attrs) == ["auth[0].token"]
