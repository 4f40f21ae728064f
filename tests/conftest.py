"""Shared fixtures: an on-disk Go module proxy served over file:// and http://."""

import functools
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer

import pytest

from registry.goproxy import escape_path

# module path -> {version: extra go.mod text}
PROXY_MODULES = {
    "example.com/testmod": {"v1.0.0": "", "v1.1.0": "", "v1.2.0": ""},
    "example.com/testmod/v2": {"v2.0.0": "", "v2.1.0": ""},
    "example.com/testmod/v3": {"v3.0.0": "", "v3.1.0-beta.1": ""},
    "example.com/retracted": {"v1.0.0": "", "v1.1.0": ""},
    "example.com/retracted/v2": {"v2.0.0": "\nretract v2.0.0 // broken release\n"},
    "example.com/legacy": {"v1.0.0": "", "v2.0.0+incompatible": None, "v2.1.0+incompatible": None},
    "example.com/Upper": {"v1.0.0": ""},
    "gopkg.in/yaml.v2": {"v2.4.0": ""},
    "gopkg.in/yaml.v3": {"v3.0.1": ""},
}


def write_proxy(root, modules=None):
    """Lay out ``modules`` under ``root`` using the proxy file layout."""
    for path, versions in (modules or PROXY_MODULES).items():
        vdir = root.joinpath(*escape_path(path).split("/"), "@v")
        vdir.mkdir(parents=True, exist_ok=True)
        vdir.joinpath("list").write_text("".join(f"{v}\n" for v in versions), encoding="utf-8")
        for version, extra in versions.items():
            if extra is None:
                # legacy releases have no go.mod of their own
                continue
            vdir.joinpath(f"{version}.mod").write_text(f"module {path}\n{extra}", encoding="utf-8")
    return root


class _QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format, *args):  # pylint: disable=redefined-builtin
        pass


@pytest.fixture(scope="session")
def proxy_dir(tmp_path_factory):
    """Directory holding the test proxy content."""
    return write_proxy(tmp_path_factory.mktemp("goproxy"))


@pytest.fixture(scope="session")
def file_proxy_url(proxy_dir):
    return proxy_dir.as_uri()


@pytest.fixture(scope="session")
def http_proxy_url(proxy_dir):
    """Serve the proxy directory from a local HTTP server."""
    handler = functools.partial(_QuietHandler, directory=str(proxy_dir))
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


@pytest.fixture(params=["file", "http"])
def proxy_url(request):
    """Each test using this runs once per proxy backend."""
    return request.getfixturevalue(f"{request.param}_proxy_url")
