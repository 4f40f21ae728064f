"""Tests for module, spec and retraction models."""

import pytest

from versioning.models import Module, ModuleVersion, Retractions, Spec, Update, VersionRange


class TestModule:
    """Version selection and major path navigation."""

    @pytest.mark.parametrize("mod,max_version,nextpath", [
        (
            Module("github.com/go-redis/redis", (
                "v3.2.30+incompatible", "v5.1.2+incompatible", "v4.1.11+incompatible",
                "v6.2.3+incompatible", "v6.14.1+incompatible", "v6.0.0+incompatible",
                "v6.8.2+incompatible",
            )),
            "v6.14.1+incompatible",
            "github.com/go-redis/redis/v7",
        ),
        (
            Module("golang.org/x/mod", ("v0.3.0", "v0.1.0", "v0.2.0")),
            "v0.3.0",
            "golang.org/x/mod/v2",
        ),
        (
            Module("gopkg.in/yaml.v2", ("v2.2.8", "v2.4.0", "v2.3.0")),
            "v2.4.0",
            "gopkg.in/yaml.v3",
        ),
        (
            Module("github.com/libp2p/go-libp2p", ("v0.24.0", "v0.1.0", "v6.0.23+incompatible")),
            "v0.24.0",
            "github.com/libp2p/go-libp2p/v2",
        ),
        (
            Module("github.com/foo/bar/v2", ("v2.0.0", "v2.1.0")),
            "v2.1.0",
            "github.com/foo/bar/v3",
        ),
    ])
    def test_max_and_next_path(self, mod, max_version, nextpath):
        """Max version and next major path across path conventions."""
        assert mod.max_version("", False) == max_version
        assert mod.next_major_path() == nextpath

    def test_next_major_path_without_versions(self):
        """No valid versions means no next path."""
        assert Module("example.com/empty", ()).next_major_path() is None
        assert Module("example.com/junk", ("nope",)).next_major_path() is None

    def test_with_major_path(self):
        """The major suffix is replaced, and dropped for v1."""
        mod = Module("github.com/foo/bar/v3", ("v3.0.0",))
        assert mod.with_major_path("v5.0.0") == "github.com/foo/bar/v5"
        assert mod.with_major_path("v1.0.0") == "github.com/foo/bar"

    def test_versions_become_tuple(self):
        """Lists passed in are frozen to tuples."""
        mod = Module("example.com/m", ["v1.0.0"])
        assert mod.versions == ("v1.0.0",)

    def test_retract_removes_covered_versions(self):
        """Retracting yields a copy without the covered versions."""
        mod = Module("example.com/m", ("v1.0.0", "v1.1.0", "v1.2.0", "v1.3.0"))
        retracted = mod.retract(Retractions((VersionRange("v1.1.0", "v1.2.0"),)))
        assert retracted.versions == ("v1.0.0", "v1.3.0")
        assert mod.versions == ("v1.0.0", "v1.1.0", "v1.2.0", "v1.3.0")

    def test_retract_nothing_returns_same(self):
        """Empty retractions leave the module as is."""
        mod = Module("example.com/m", ("v1.0.0",))
        assert mod.retract(Retractions()) is mod


class TestRetractions:
    """Inclusive version ranges."""

    def test_range_bounds_inclusive(self):
        """Both range ends are included."""
        rng = VersionRange("v1.0.0", "v1.2.0")
        assert rng.includes("v1.0.0")
        assert rng.includes("v1.1.5")
        assert rng.includes("v1.2.0")
        assert not rng.includes("v1.2.1")
        assert not rng.includes("v0.9.0")

    def test_single_version(self):
        """A one-version range covers only that version."""
        rng = VersionRange("v2.0.0", "v2.0.0")
        assert rng.includes("v2.0.0")
        assert not rng.includes("v2.0.1")

    def test_collection(self):
        """Membership in any of several ranges."""
        r = Retractions((VersionRange("v1.0.0", "v1.0.0"), VersionRange("v3.0.0", "v3.1.0")))
        assert len(r) == 2
        assert r
        assert r.includes("v3.0.5")
        assert not r.includes("v2.0.0")
        assert not Retractions()


class TestSpec:
    """Resolved rewrite targets."""

    def test_str_slash(self):
        """Slash majors appear in both the rendered target and the module path."""
        spec = Spec("github.com/foo/bar", "v3.1.0", "pkg")
        assert str(spec) == "github.com/foo/bar/v3/pkg@v3.1.0"
        assert spec.module_path == "github.com/foo/bar/v3"

    def test_str_dotted(self):
        """gopkg.in paths use the dotted major."""
        assert str(Spec("gopkg.in/yaml", "v3.0.1")) == "gopkg.in/yaml.v3@v3.0.1"

    def test_str_incompatible(self):
        """Incompatible versions keep the unsuffixed path."""
        assert str(Spec("github.com/foo/bar", "v4.0.0+incompatible")) == "github.com/foo/bar@v4.0.0+incompatible"


class TestUpdate:
    """Scan result serialization."""

    def test_to_dict_latest(self):
        """A successful update serializes both pairs."""
        update = Update(ModuleVersion("example.com/m", "v1.0.0"), latest=ModuleVersion("example.com/m/v2", "v2.0.0"))
        assert update.to_dict() == {
            "module": {"path": "example.com/m", "version": "v1.0.0"},
            "latest": {"path": "example.com/m/v2", "version": "v2.0.0"},
        }

    def test_to_dict_error(self):
        """A failed update carries the error text and no latest."""
        update = Update(ModuleVersion("example.com/m", "v1.0.0"), err=RuntimeError("boom"))
        assert update.to_dict()["error"] == "boom"
        assert "latest" not in update.to_dict()

    def test_module_version_str(self):
        """Pairs render as path@version."""
        assert str(ModuleVersion("example.com/m", "v1.0.0")) == "example.com/m@v1.0.0"
