"""Tests for loading pluginstall manifests."""

import pytest

from pluginstall.errors import LoadError, PluginNotFoundError
from pluginstall.loaders import load_manifest, lookup_plugin, parse_manifest
from pluginstall.models import JenkinsSource, SpigetSource

VALID_MANIFEST = """
[meta]
name = "survival"

[plugin.foo]
type = "spiget"
resource_id = 42

[plugin.baz]
type = "jenkins"
url = "https://ci.example.com/job/baz"
"""


def test_load_manifest(tmp_path):
    path = tmp_path / "pluginstall.manifest.toml"
    path.write_text(VALID_MANIFEST)
    manifest = load_manifest(path)
    assert manifest.meta.name == "survival"
    assert set(manifest.plugins) == {"foo", "baz"}
    assert isinstance(manifest.plugins["baz"], JenkinsSource)


def test_load_manifest_without_plugins():
    manifest = parse_manifest('[meta]\nname = "empty"\n')
    assert manifest.plugins == {}


def test_load_manifest_not_found(tmp_path):
    path = tmp_path / "pluginstall.manifest.toml"
    with pytest.raises(LoadError, match="not found") as exc_info:
        load_manifest(path)
    assert exc_info.value.path == path


def test_load_manifest_invalid_toml(tmp_path):
    path = tmp_path / "pluginstall.manifest.toml"
    path.write_text("[meta\nname = ")
    with pytest.raises(LoadError, match="Invalid TOML") as exc_info:
        load_manifest(path)
    assert exc_info.value.path == path


def test_load_manifest_missing_meta():
    with pytest.raises(LoadError, match="Invalid manifest"):
        parse_manifest('[plugin.foo]\ntype = "spiget"\nresource_id = 42\n')


def test_load_manifest_unknown_key():
    with pytest.raises(LoadError):
        parse_manifest('[meta]\nname = "x"\n[plugin.foo]\ntype = "spiget"\nresource_id = 42\nslug = "Foo"\n')


def test_load_manifest_resource_id_must_be_integer():
    with pytest.raises(LoadError):
        parse_manifest('[meta]\nname = "x"\n[plugin.foo]\ntype = "spiget"\nresource_id = "forty-two"\n')


def test_lookup_plugin():
    manifest = parse_manifest(VALID_MANIFEST)
    source = lookup_plugin(manifest, "foo")
    assert isinstance(source, SpigetSource)
    assert source.resource_id == 42


def test_lookup_plugin_missing():
    manifest = parse_manifest(VALID_MANIFEST)
    with pytest.raises(PluginNotFoundError, match="'bar'"):
        lookup_plugin(manifest, "bar")


@pytest.mark.parametrize("name", ["", ".", "..", "../x", "a/b", "..\\x", "/abs"])
def test_manifest_name_must_be_plain_directory_name(name):
    with pytest.raises(LoadError, match="plain directory name"):
        parse_manifest(f'[meta]\nname = "{name}"\n'.replace("\\", "\\\\"))
