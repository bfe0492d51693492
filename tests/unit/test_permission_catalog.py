"""Tests for named permission catalogs."""

from __future__ import annotations

from pathlib import Path

import pytest

from bitperm.core.permission_set import UINT256_BITS, UINT256_MAX, PermissionRangeError, check
from bitperm.sdk.permissions import (
    PermissionCatalog,
    PermissionCatalogError,
    PermissionCollisionError,
    UnknownPermissionError,
    load_catalog,
    parse_literal,
)


@pytest.fixture
def catalog() -> PermissionCatalog:
    """Catalog with READ=1, WRITE=2, EXECUTE=4 and two roles."""
    catalog = PermissionCatalog()
    catalog.define("read", description="Read files")
    catalog.define("write")
    catalog.define("execute")
    catalog.define_role("operator", "read", "write")
    catalog.define_role("admin", "operator", "execute", description="Everything")
    return catalog


class TestDefine:
    """Sequential bit allocation."""

    def test_sequential_allocation(self, catalog):
        assert catalog.value_of("read") == 1
        assert catalog.value_of("write") == 2
        assert catalog.value_of("execute") == 4
        assert catalog.assigned == 7

    def test_explicit_position(self):
        catalog = PermissionCatalog()
        assert catalog.define("owner", position=255) == 1 << 255
        assert catalog.define("read") == 1

    def test_allocation_fills_gaps(self):
        catalog = PermissionCatalog()
        catalog.define("a", position=0)
        catalog.define("c", position=2)
        assert catalog.define("b") == 2
        assert catalog.define("d") == 8

    def test_duplicate_name_rejected(self, catalog):
        with pytest.raises(PermissionCollisionError, match="name already defined"):
            catalog.define("read")

    def test_duplicate_bit_rejected(self, catalog):
        with pytest.raises(PermissionCollisionError, match="bit 1 already assigned to 'write'"):
            catalog.define("modify", position=1)

    def test_position_out_of_range(self):
        with pytest.raises(PermissionRangeError):
            PermissionCatalog().define("too_high", position=UINT256_BITS)

    def test_catalog_full(self):
        catalog = PermissionCatalog()
        for index in range(UINT256_BITS):
            catalog.define(f"p{index}")

        assert catalog.assigned == UINT256_MAX
        with pytest.raises(PermissionRangeError, match="all permission bits are assigned"):
            catalog.define("one_more")

    @pytest.mark.parametrize("name", ["", "1st", "read|write", "has space", None])
    def test_invalid_names(self, name):
        with pytest.raises(PermissionCatalogError, match="Invalid permission name"):
            PermissionCatalog().define(name)

    def test_dotted_names_allowed(self):
        catalog = PermissionCatalog()
        catalog.define("vault.read")
        catalog.define("vault:write")
        assert catalog.parse("vault.read|vault:write") == 3


class TestRoles:
    """Roles are flat OR combinations."""

    def test_role_value(self, catalog):
        assert catalog.value_of("operator") == 3
        assert catalog.value_of("admin") == 7

    def test_role_does_not_own_bits(self, catalog):
        assert catalog.assigned == 7
        assert catalog.define("delete") == 8

    def test_unknown_member(self, catalog):
        with pytest.raises(UnknownPermissionError, match="Unknown permission or role: 'delete'"):
            catalog.define_role("janitor", "delete")

    def test_unknown_permission_is_key_error(self, catalog):
        with pytest.raises(KeyError):
            catalog.value_of("missing")

    def test_empty_role_rejected(self, catalog):
        with pytest.raises(PermissionCatalogError, match="at least one member"):
            catalog.define_role("nobody")

    def test_role_name_collides_with_permission(self, catalog):
        with pytest.raises(PermissionCollisionError):
            catalog.define_role("read", "write")

    def test_views(self, catalog):
        assert [entry.name for entry in catalog.permissions()] == ["read", "write", "execute"]
        assert [entry.name for entry in catalog.roles()] == ["operator", "admin"]
        assert len(catalog) == 5
        assert "admin" in catalog
        assert "root" not in catalog

    def test_describe(self, catalog):
        assert catalog.describe("read") == "Read files"
        assert catalog.describe("write") == ""
        assert catalog.describe("admin") == "Everything"


class TestLookup:
    """Names and masks."""

    def test_mask(self, catalog):
        assert catalog.mask("read", "execute") == 5
        assert catalog.mask() == 0

    def test_names_in(self, catalog):
        assert catalog.names_in(5) == ["read", "execute"]
        assert catalog.names_in(0) == []

    def test_names_in_skips_unnamed_bits(self, catalog):
        assert catalog.names_in(0b1001) == ["read"]
        assert catalog.unnamed_bits(0b1001) == 0b1000

    def test_roles_in(self, catalog):
        assert catalog.roles_in(3) == ["operator"]
        assert catalog.roles_in(7) == ["operator", "admin"]
        assert catalog.roles_in(5) == []

    def test_masks_work_with_core_check(self, catalog):
        user = catalog.mask("operator")
        assert check(user, catalog.value_of("write"))
        assert not check(user, catalog.value_of("admin"))


class TestParse:
    """Expression parsing."""

    def test_names_and_roles(self, catalog):
        assert catalog.parse("read|execute") == 5
        assert catalog.parse(" operator | execute ") == 7

    def test_literals(self, catalog):
        assert catalog.parse("8") == 8
        assert catalog.parse("0x10|read") == 17
        assert catalog.parse("0b11") == 3
        assert catalog.parse("0o10") == 8

    def test_empty_expression_is_no_permission(self, catalog):
        assert catalog.parse("") == 0
        assert catalog.parse("   ") == 0
        assert catalog.parse("0") == 0

    def test_empty_term_rejected(self, catalog):
        with pytest.raises(PermissionCatalogError, match="Empty term"):
            catalog.parse("read||write")

    def test_unknown_name(self, catalog):
        with pytest.raises(UnknownPermissionError):
            catalog.parse("read|root")

    def test_invalid_literal(self):
        with pytest.raises(PermissionCatalogError, match="Invalid integer literal"):
            parse_literal("0xZZ")

    def test_literal_out_of_range(self):
        with pytest.raises(PermissionRangeError):
            parse_literal(hex(UINT256_MAX + 1))

    def test_empty_catalog_parses_literals(self):
        assert PermissionCatalog().parse("1|2|4") == 7


class TestFromMapping:
    """Building catalogs from documents."""

    def test_full_document(self):
        catalog = PermissionCatalog.from_mapping(
            {
                "permissions": [
                    "read",
                    {"name": "write", "description": "Modify"},
                    {"name": "owner", "position": 255},
                ],
                "roles": {
                    "admin": {"members": ["editor", "owner"], "description": "All"},
                    "editor": ["read", "write"],
                },
            }
        )

        assert catalog.value_of("editor") == 3
        assert catalog.value_of("admin") == 3 | (1 << 255)
        assert catalog.describe("write") == "Modify"
        assert catalog.describe("admin") == "All"

    def test_empty_document(self):
        assert len(PermissionCatalog.from_mapping({})) == 0

    @pytest.mark.parametrize(
        "data",
        [
            [],
            {"permissions": "read"},
            {"permissions": [42]},
            {"permissions": [{"description": "no name"}]},
            {"permissions": [{"name": "read", "position": "one"}]},
            {"permissions": [{"name": "read", "position": 300}]},
            {"permissions": [{"name": "read", "position": -1}]},
            {"roles": ["admin"]},
            {"roles": {"admin": "read"}},
            {"permissions": ["read"], "roles": {"admin": {"members": "read"}}},
            {"groups": {}},
        ],
    )
    def test_malformed_documents(self, data):
        with pytest.raises(PermissionCatalogError):
            PermissionCatalog.from_mapping(data)

    def test_position_out_of_range_is_catalog_error(self):
        with pytest.raises(PermissionCatalogError, match="between 0 and 255, got 256"):
            PermissionCatalog.from_mapping({"permissions": [{"name": "owner", "position": UINT256_BITS}]})

    def test_null_descriptions_are_empty(self):
        catalog = PermissionCatalog.from_mapping(
            {
                "permissions": [{"name": "read", "description": None}],
                "roles": {"viewer": {"members": ["read"], "description": None}},
            }
        )

        assert catalog.describe("read") == ""
        assert catalog.describe("viewer") == ""

    def test_unknown_role_member(self):
        with pytest.raises(UnknownPermissionError, match="'delete'"):
            PermissionCatalog.from_mapping({"permissions": ["read"], "roles": {"editor": ["read", "delete"]}})

    def test_circular_roles(self):
        with pytest.raises(PermissionCatalogError, match="Circular role definitions"):
            PermissionCatalog.from_mapping({"permissions": ["read"], "roles": {"a": ["b"], "b": ["a"]}})

    def test_colliding_positions(self):
        with pytest.raises(PermissionCollisionError):
            PermissionCatalog.from_mapping({"permissions": [{"name": "a", "position": 3}, {"name": "b", "position": 3}]})


class TestLoadCatalog:
    """YAML loading."""

    def test_load_yaml(self, tmp_path: Path):
        path = tmp_path / "permissions.yaml"
        path.write_text(
            """
permissions:
  - read
  - write
  - name: execute
    description: Run programs
roles:
  admin: [read, write, execute]
""",
            encoding="utf-8",
        )

        catalog = load_catalog(path)

        assert catalog.value_of("admin") == 7
        assert catalog.describe("execute") == "Run programs"

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert len(load_catalog(path)) == 0

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "broken.yaml"
        path.write_text("permissions: [read, write\n", encoding="utf-8")

        with pytest.raises(PermissionCatalogError, match="Invalid YAML"):
            load_catalog(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(OSError):
            load_catalog(tmp_path / "missing.yaml")

    def test_blank_description(self, tmp_path: Path):
        path = tmp_path / "permissions.yaml"
        path.write_text("permissions:\n  - name: read\n    description:\n", encoding="utf-8")

        assert load_catalog(path).describe("read") == ""

    def test_invalid_utf8(self, tmp_path: Path):
        path = tmp_path / "latin1.yaml"
        path.write_bytes(b"permissions:\n  - r\xffead\n")

        with pytest.raises(PermissionCatalogError, match="not valid UTF-8"):
            load_catalog(path)
