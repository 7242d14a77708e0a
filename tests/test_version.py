import platform

from modelrouter.version import FULL_VERSION, full_version


def test_full_version_layout():
    line = full_version("1.2.3", "abc123", "2024-05-01T00:00:00Z")

    assert line.startswith("1.2.3 (commit: abc123, runtime: ")
    assert line.endswith(", buildDate: 2024-05-01T00:00:00Z)")


def test_full_version_mentions_runtime():
    line = full_version("1.0", "sha", "today")

    assert f"runtime: python{platform.python_version()}," in line


def test_default_full_version():
    assert FULL_VERSION == full_version()
    assert FULL_VERSION.startswith("devel (commit: unknown,")
    assert FULL_VERSION.endswith("buildDate: unknown)")