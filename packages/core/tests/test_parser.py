"""Tests for the HCL subset parser, including render/parse round trips."""

from __future__ import annotations

import pytest
from importwright.errors import ParseError
from importwright.exporter import ConfigEmitter
from importwright.parser import block_attributes, parse, parse_import_file, parse_import_requests
from importwright.reconciler import reconcile
from importwright.spec import Expression

_IMPORTS = """\
# Buckets
import {
  to = aws_s3_bucket.logs
  id = "logs"
}

import {
  to = aws_security_group.web   // trailing comment
  id = "sg-0123"
}

/* not an import */
resource "aws_s3_bucket" "other" {
  bucket = "other"
}
"""


class TestImportRequests:
    def test_reads_import_blocks_in_order(self):
        requests = parse_import_requests(_IMPORTS)
        assert [(r.address, r.external_id) for r in requests] == [
            ("aws_s3_bucket.logs", "logs"),
            ("aws_security_group.web", "sg-0123"),
        ]

    def test_request_properties(self):
        req = parse_import_requests(_IMPORTS)[1]
        assert req.resource_type == "aws_security_group"
        assert req.local_name == "web"

    def test_parse_import_file(self, tmp_path):
        p = tmp_path / "imports.tf"
        p.write_text(_IMPORTS)
        assert len(parse_import_file(p)) == 2

    def test_missing_id(self):
        with pytest.raises(ParseError, match="both 'to' and 'id'"):
            parse_import_requests("import {\n  to = aws_s3_bucket.a\n}\n")

    def test_non_string_id(self):
        with pytest.raises(ParseError, match="must be a string"):
            parse_import_requests("import {\n  to = aws_s3_bucket.a\n  id = 5\n}\n")

    def test_bad_address(self):
        with pytest.raises(ParseError, match="Invalid import block"):
            parse_import_requests('import {\n  to = module.x.aws_s3_bucket.a\n  id = "a"\n}\n')

    def test_empty_id(self):
        with pytest.raises(ParseError):
            parse_import_requests('import {\n  to = aws_s3_bucket.a\n  id = ""\n}\n')


class TestSyntax:
    def test_values(self):
        (block,) = parse(
            'thing "a" "b" {\n'
            "  n = -3\n"
            "  f = 2.5e1\n"
            "  t = true\n"
            "  z = null\n"
            '  s = "q\\"uote\\n$${x}"\n'
            '  l = [1, "two",\n    [3]]\n'
            '  m = { a = 1, "b c" : 2 }\n'
            "  r = var.x\n"
            "}\n"
        )
        assert block.block_type == "thing"
        assert block.labels == ["a", "b"]
        assert block.attributes == {
            "n": -3,
            "f": 25.0,
            "t": True,
            "z": None,
            "s": 'q"uote\n${x}',
            "l": [1, "two", [3]],
            "m": {"a": 1, "b c": 2},
            "r": Expression("var.x"),
        }

    def test_nested_blocks(self):
        (block,) = parse("outer {\n  inner {\n    x = 1\n  }\n  inner {}\n}\n")
        assert [b.attributes for b in block.blocks] == [{"x": 1}, {}]

    def test_unterminated_block(self):
        with pytest.raises(ParseError, match="end of input"):
            parse("outer {\n  x = 1\n")

    def test_duplicate_attribute(self):
        with pytest.raises(ParseError, match="Duplicate attribute"):
            parse("b {\n  x = 1\n  x = 2\n}\n")

    def test_error_reports_line(self):
        with pytest.raises(ParseError) as exc_info:
            parse("b {\n  x = 1\n  y = @\n}\n")
        assert exc_info.value.line == 3

    def test_two_attributes_on_one_line_rejected(self):
        with pytest.raises(ParseError, match="newline"):
            parse("b {\n  x = 1 y = 2\n}\n")

    def test_top_level_attribute_rejected(self):
        with pytest.raises(ParseError, match="top-level"):
            parse('region = "us-east-1"\n')


class TestRoundTrip:
    """fetch -> reconcile -> render -> parse -> reconcile preserves non-computed attributes."""

    @pytest.mark.parametrize(
        "resource_type,fixture",
        [
            ("aws_s3_bucket", "bucket_attrs"),
            ("aws_security_group", "security_group_attrs"),
            ("aws_db_instance", "db_attrs"),
        ],
    )
    def test_round_trip(self, request, registry, resource_type, fixture):
        schema = registry.lookup(resource_type)
        original = reconcile(schema, request.getfixturevalue(fixture))

        emitter = ConfigEmitter(registry, reveal_sensitive=True)
        text = emitter.render(resource_type, "main", original).to_hcl()
        (parsed,) = parse(text)
        again = reconcile(schema, block_attributes(parsed, schema))

        settable = {k: v for k, v in original.items() if not schema.get(k).computed_only}
        assert again == settable

    def test_round_trip_keeps_placeholders_as_expressions(self, registry, db_attrs):
        schema = registry.lookup("aws_db_instance")
        attrs = reconcile(schema, db_attrs)
        (parsed,) = parse(ConfigEmitter(registry).render("aws_db_instance", "orders", attrs).to_hcl())
        again = reconcile(schema, block_attributes(parsed, schema))
        assert again["password"] == Expression("var.aws_db_instance_orders_password")

    def test_special_characters_survive(self, registry):
        schema = registry.lookup("aws_s3_bucket")
        attrs = reconcile(schema, {"bucket": 'we"ird\\na${me}\ttab', "tags": {"a b": "%{x}"}})
        (parsed,) = parse(ConfigEmitter(registry).render("aws_s3_bucket", "w", attrs).to_hcl())
        assert reconcile(schema, block_attributes(parsed, schema)) == attrs
