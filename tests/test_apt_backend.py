"""Tests for the apt/dpkg backend with a scripted command runner."""

import io
import tarfile
from pathlib import Path

import pytest

from pkgporter.backend.apt import AptBackend, parse_apt_cache_depends, relations_to_names
from pkgporter.errors import BackendError, FetchError, InstallError
from pkgporter.execution import CommandResult
from pkgporter.models import Tier


class FakeRunner:
    """Records every command; answers from a list of (argv prefix, result) rules."""

    def __init__(self, rules=None, on_call=None):
        self.rules = list(rules or [])
        self.calls: list[list[str]] = []
        self.kwargs: list[dict] = []
        self.on_call = on_call

    def __call__(self, argv, **kwargs):
        argv = list(argv)
        self.calls.append(argv)
        self.kwargs.append(kwargs)
        if self.on_call:
            self.on_call(argv, kwargs)
        for prefix, result in self.rules:
            if argv[: len(prefix)] == prefix:
                return result
        return CommandResult(argv, 0, "", "")


def ok(stdout=""):
    return CommandResult([], 0, stdout, "")


def failed(stderr="E: failure"):
    return CommandResult([], 100, "", stderr)


def _ar_member(name: str, data: bytes) -> bytes:
    header = (
        f"{name:<16}{0:<12}{0:<6}{0:<6}{'100644':<8}{len(data):<10}".encode("ascii") + b"`\n"
    )
    return header + data + (b"\n" if len(data) % 2 else b"")


def _tar_gz(files: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, content in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def build_deb(path: Path, control: str) -> Path:
    """Write a minimal but well-formed .deb archive."""
    path.write_bytes(
        b"!<arch>\n"
        + _ar_member("debian-binary", b"2.0\n")
        + _ar_member("control.tar.gz", _tar_gz({"./control": control.encode()}))
        + _ar_member("data.tar.gz", _tar_gz({}))
    )
    return path


APT_CACHE_OUTPUT = """\
hello
  PreDepends: dpkg
  Depends: libc6
 |Depends: libfoo
  Depends: libbar
  Depends: <python3:any>
    python3
  Depends: libssl3:amd64
  Recommends: hello-doc
  Suggests: hello-extra
  Depends: libc6
"""


class TestParsing:
    def test_apt_cache_depends(self):
        assert parse_apt_cache_depends(APT_CACHE_OUTPUT) == ["dpkg", "libc6", "libfoo", "libssl3"]

    def test_apt_cache_depends_empty(self):
        assert parse_apt_cache_depends("hello\n") == []

    def test_control_relations_first_alternative(self):
        names = relations_to_names("dpkg (>= 1.15)", "libc6 (>= 2.34), libfoo | libbar, zlib1g")
        assert names == ["dpkg", "libc6", "libfoo", "zlib1g"]


class TestMetadata:
    def test_read_artifact_metadata(self, tmp_path):
        deb = build_deb(
            tmp_path / "hello_2.10_amd64.deb",
            "Package: hello\n"
            "Version: 1:2.10-2\n"
            "Architecture: amd64\n"
            "Pre-Depends: dpkg (>= 1.15)\n"
            "Depends: libc6 (>= 2.34), libfoo | libbar, hello\n"
            "Description: greeting\n",
        )
        package = AptBackend(codename="jammy", runner=FakeRunner()).read_artifact_metadata(deb)
        assert package.name == "hello"
        assert package.version == "1:2.10-2"
        assert package.architecture == "amd64"
        assert package.depends == ("dpkg", "libc6", "libfoo")

    def test_unreadable_artifact(self, tmp_path):
        junk = tmp_path / "junk_1_all.deb"
        junk.write_bytes(b"not an archive")
        with pytest.raises(BackendError):
            AptBackend(codename="jammy", runner=FakeRunner()).read_artifact_metadata(junk)

    def test_validate_uses_dpkg_deb(self, tmp_path):
        runner = FakeRunner([(["dpkg-deb"], failed())])
        backend = AptBackend(codename="jammy", runner=runner)
        assert backend.validate_artifact(tmp_path / "x.deb") is False
        assert runner.calls == [["dpkg-deb", "--info", str(tmp_path / "x.deb")]]


class TestFetch:
    def test_tier_release_names(self):
        backend = AptBackend(codename="jammy", runner=FakeRunner())
        assert backend.tier_release(Tier.PRIMARY) is None
        assert backend.tier_release(Tier.BACKPORTS) == "jammy-backports"
        assert backend.tier_release(Tier.UPDATES) == "jammy-updates"

    def test_fetch_runs_apt_get_download_in_dest(self, tmp_path):
        def download(argv, kwargs):
            if argv[-2:] == ["download", "hello"]:
                (Path(kwargs["cwd"]) / "hello_2.10-2_amd64.deb").write_bytes(b"x")

        runner = FakeRunner(on_call=download)
        backend = AptBackend(codename="jammy", runner=runner)
        path = backend.fetch_from_tier("hello", Tier.BACKPORTS, tmp_path / "dl")
        assert path == tmp_path / "dl" / "hello_2.10-2_amd64.deb"
        assert runner.calls == [["apt-get", "-t", "jammy-backports", "download", "hello"]]

    def test_fetch_failure_raises(self, tmp_path):
        backend = AptBackend(codename="jammy", runner=FakeRunner([(["apt-get"], failed("E: no"))]))
        with pytest.raises(FetchError, match="E: no"):
            backend.fetch_from_tier("hello", Tier.PRIMARY, tmp_path)

    def test_fetch_without_artifact_raises(self, tmp_path):
        backend = AptBackend(codename="jammy", runner=FakeRunner())
        with pytest.raises(FetchError, match="no artifact"):
            backend.fetch_from_tier("hello", Tier.PRIMARY, tmp_path)

    def test_codename_from_lsb_release(self):
        backend = AptBackend(runner=FakeRunner([(["lsb_release"], ok("noble\n"))]))
        assert backend.codename == "noble"

    def test_codename_falls_back_to_os_release(self, tmp_path, monkeypatch):
        os_release = tmp_path / "os-release"
        os_release.write_text('NAME="Ubuntu"\nVERSION_CODENAME=jammy\n')
        monkeypatch.setattr("pkgporter.backend.apt.OS_RELEASE", os_release)
        backend = AptBackend(runner=FakeRunner([(["lsb_release"], failed())]))
        assert backend.codename == "jammy"


class TestPackageDatabase:
    def test_installed_version(self):
        runner = FakeRunner([(["dpkg-query"], ok("install ok installed\t2.0-1"))])
        assert AptBackend(codename="x", runner=runner).installed_version("foo") == "2.0-1"

    def test_config_files_only_is_not_installed(self):
        runner = FakeRunner([(["dpkg-query"], ok("deinstall ok config-files\t2.0-1"))])
        assert AptBackend(codename="x", runner=runner).installed_version("foo") is None

    def test_unknown_package(self):
        runner = FakeRunner([(["dpkg-query"], failed("no packages found"))])
        assert AptBackend(codename="x", runner=runner).installed_version("foo") is None

    def test_compare_versions_uses_debian_ordering(self):
        backend = AptBackend(codename="x", runner=FakeRunner())
        assert backend.compare_versions("1:1.0", "2.0") > 0
        assert backend.compare_versions("1.0~rc1", "1.0") < 0
        assert backend.compare_versions("1.0-1", "1.0-1") == 0

    def test_install_failure_raises_install_error(self, tmp_path):
        runner = FakeRunner([(["dpkg", "-i"], failed("dependency problems"))])
        with pytest.raises(InstallError, match="dependency problems"):
            AptBackend(codename="x", runner=runner).install_artifact(tmp_path / "a.deb")
        assert runner.kwargs[0]["env"] == {"DEBIAN_FRONTEND": "noninteractive"}

    def test_list_broken_packages(self):
        output = (
            "good install ok installed\n"
            "half install ok half-configured\n"
            "unpacked install ok unpacked\n"
            "needy install reinstreq installed\n"
        )
        runner = FakeRunner([(["dpkg-query"], ok(output))])
        assert AptBackend(codename="x", runner=runner).list_broken_packages() == [
            "half",
            "unpacked",
            "needy",
        ]

    def test_housekeeping_commands(self):
        runner = FakeRunner()
        backend = AptBackend(codename="x", runner=runner)
        backend.run_generic_dependency_fix()
        backend.configure_pending()
        backend.refresh_index(fix_missing=True)
        backend.upgrade_all()
        backend.autoremove()
        backend.clean_cache()
        assert runner.calls == [
            ["apt-get", "install", "-f", "-y"],
            ["dpkg", "--configure", "-a"],
            ["apt-get", "update", "--fix-missing"],
            ["apt-get", "upgrade", "-y"],
            ["apt-get", "autoremove", "-y"],
            ["apt-get", "clean"],
        ]
