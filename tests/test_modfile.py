"""Tests for the go.mod reader."""

import pytest

from common.errors import NotFoundError, ParseError
from registry.modfile import find_modfile, load_modfile, parse_modfile, set_module_path
from versioning.models import ModuleVersion, VersionRange

GO_MOD = """\
module github.com/acme/widget // the widget

go 1.21

require github.com/pkg/errors v0.9.1

require (
	github.com/google/go-cmp v0.5.9
	golang.org/x/sys v0.8.0 // indirect
	"gopkg.in/yaml.v3" v3.0.1 // indirect; used by tests
)

replace github.com/pkg/errors => ../errors

retract (
	v1.0.1 // published by accident
	[v1.1.0, v1.2.0]
)
retract v0.1.0
"""


class TestParseModfile:
    """Directive parsing."""

    def test_module(self):
        """The module path ignores trailing comments."""
        assert parse_modfile(GO_MOD).module == "github.com/acme/widget"

    def test_requires(self):
        """Single-line and block requires keep order and indirect markers."""
        mod = parse_modfile(GO_MOD.encode("utf-8"))
        assert [r.path for r in mod.requires] == [
            "github.com/pkg/errors",
            "github.com/google/go-cmp",
            "golang.org/x/sys",
            "gopkg.in/yaml.v3",
        ]
        assert [r.indirect for r in mod.requires] == [False, False, True, True]

    def test_direct(self):
        """Only non-indirect requirements are direct."""
        assert parse_modfile(GO_MOD).direct() == [
            ModuleVersion("github.com/pkg/errors", "v0.9.1"),
            ModuleVersion("github.com/google/go-cmp", "v0.5.9"),
        ]

    def test_retractions(self):
        """Single versions and ranges from both retract forms."""
        retractions = parse_modfile(GO_MOD).retractions
        assert retractions.ranges == (
            VersionRange("v1.0.1", "v1.0.1"),
            VersionRange("v1.1.0", "v1.2.0"),
            VersionRange("v0.1.0", "v0.1.0"),
        )
        assert retractions.includes("v1.1.5")
        assert not retractions.includes("v1.0.0")

    def test_empty(self):
        """An empty file parses to an empty manifest."""
        mod = parse_modfile(b"")
        assert mod.module == ""
        assert mod.requires == []
        assert not mod.retractions


class TestParseErrors:
    """Malformed manifests."""

    def test_bad_require_version(self):
        """Invalid versions are reported with their line."""
        with pytest.raises(ParseError, match=r"go.mod:3"):
            parse_modfile("module m\n\nrequire example.com/x latest\n")

    def test_inverted_retract_range(self):
        """A range with low above high is rejected."""
        with pytest.raises(ParseError, match="empty"):
            parse_modfile("module m\nretract [v1.2.0, v1.0.0]\n")

    def test_unterminated_block(self):
        """A block without a closing paren is rejected."""
        with pytest.raises(ParseError, match="unterminated require block"):
            parse_modfile("module m\nrequire (\n\texample.com/x v1.0.0\n")

    def test_invalid_utf8(self):
        """Undecodable bytes are a parse error."""
        with pytest.raises(ParseError):
            parse_modfile(b"module \xff\xfe\n")


class TestModfileOnDisk:
    """Locating and loading go.mod files."""

    def test_find_in_parent(self, tmp_path):
        """The nearest go.mod up the tree is found and loaded."""
        (tmp_path / "go.mod").write_text("module example.com/root\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        found = find_modfile(str(nested))
        assert found == str(tmp_path / "go.mod")
        assert load_modfile(found).module == "example.com/root"

    def test_not_found(self, tmp_path, monkeypatch):
        """Reaching the filesystem root without a go.mod fails."""
        monkeypatch.setattr("registry.modfile.os.path.isfile", lambda _: False)
        with pytest.raises(NotFoundError):
            find_modfile(str(tmp_path))


class TestSetModulePath:
    """Editing the module directive."""

    def test_replaces_only_module_line(self):
        """Everything but the module path is kept byte for byte."""
        out = set_module_path(GO_MOD, "github.com/acme/widget/v2")
        assert out.startswith("module github.com/acme/widget/v2 // the widget\n")
        assert out.replace("github.com/acme/widget/v2", "github.com/acme/widget", 1) == GO_MOD

    def test_quoted_module(self):
        """Quoted module paths stay quoted."""
        assert set_module_path('module "example.com/m"\n', "example.com/m/v3") == 'module "example.com/m/v3"\n'

    def test_missing_directive(self):
        """A manifest without a module line cannot be edited."""
        with pytest.raises(ParseError):
            set_module_path("go 1.21\n", "example.com/m")
