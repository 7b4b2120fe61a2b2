"""
Tests for pulling and extracting packages.
"""

import os

import pytest

from conftest import package_json, write_tarball
from hooktrace import npm_pack
from hooktrace.errors import AmbiguousExtractionError, CommandError, ExtractionError
from hooktrace.process import CompletedCommand


def fake_pack(members, archive="pkg-1.0.0.tgz", calls=None):
    """Stand-in for `npm pack` that drops a tarball into cwd."""
    def run(cmd, cwd, max_buffer=None):
        if calls is not None:
            calls.append((cmd, cwd))
        write_tarball(os.path.join(cwd, archive), members)
        return CompletedCommand(cmd=cmd, returncode=0, stdout=f"npm notice\n{archive}\n", stderr="")
    return run


class TestPullPackage:
    def test_single_entry(self, work_dir, monkeypatch):
        calls = []
        monkeypatch.setattr(npm_pack, "run_command", fake_pack(
            {"pkg-1.0.0/package.json": package_json(name="pkg", version="1.0.0")}, calls=calls,
        ))
        artifact = npm_pack.pull_package("pkg@1.0.0", str(work_dir), npm_bin="npm")

        assert artifact.package_file == "pkg-1.0.0.tgz"
        assert artifact.extracted_folder == "./pkg-1.0.0"
        assert os.path.isfile(os.path.join(artifact.extracted_path, "package.json"))
        assert os.path.isfile(artifact.archive_path)

        cmd, cwd = calls[0]
        assert cmd == ["npm", "pack", "pkg@1.0.0", "--ignore-scripts"]
        assert cwd == str(work_dir)

    def test_ignore_scripts_can_be_disabled(self, work_dir, monkeypatch):
        calls = []
        monkeypatch.setattr(npm_pack, "run_command", fake_pack({"package/index.js": ""}, calls=calls))
        npm_pack.pull_package("pkg", str(work_dir), npm_bin="npm", ignore_scripts=False)
        assert "--ignore-scripts" not in calls[0][0]

    def test_existing_entries_ignored(self, work_dir, monkeypatch):
        (work_dir / "unrelated").mkdir()
        (work_dir / "notes.txt").write_text("x")
        monkeypatch.setattr(npm_pack, "run_command", fake_pack({"package/package.json": "{}"}))
        artifact = npm_pack.pull_package("pkg", str(work_dir))
        assert artifact.extracted_folder == "./package"

    def test_multiple_entries_is_ambiguous(self, work_dir, monkeypatch):
        monkeypatch.setattr(npm_pack, "run_command", fake_pack({
            "alpha/package.json": "{}",
            "beta/package.json": "{}",
            "gamma.txt": "loose file",
        }))
        with pytest.raises(AmbiguousExtractionError) as exc:
            npm_pack.pull_package("pkg", str(work_dir))
        assert exc.value.candidates == ["alpha", "beta", "gamma.txt"]
        for name in ("alpha", "beta", "gamma.txt"):
            assert name in str(exc.value)

    def test_no_new_entry(self, work_dir, monkeypatch):
        (work_dir / "package").mkdir()
        monkeypatch.setattr(npm_pack, "run_command", fake_pack({"package/package.json": "{}"}))
        with pytest.raises(ExtractionError):
            npm_pack.pull_package("pkg", str(work_dir))

    def test_corrupt_archive(self, work_dir, monkeypatch):
        def run(cmd, cwd, max_buffer=None):
            (work_dir / "bad.tgz").write_bytes(b"definitely not a tarball")
            return CompletedCommand(cmd=cmd, returncode=0, stdout="bad.tgz\n", stderr="")
        monkeypatch.setattr(npm_pack, "run_command", run)
        with pytest.raises(ExtractionError):
            npm_pack.pull_package("pkg", str(work_dir))

    def test_empty_pack_output(self, work_dir, monkeypatch):
        monkeypatch.setattr(
            npm_pack, "run_command",
            lambda cmd, cwd, max_buffer=None: CompletedCommand(cmd=cmd, returncode=0, stdout="\n", stderr=""),
        )
        with pytest.raises(CommandError):
            npm_pack.pull_package("pkg", str(work_dir))

    def test_pack_failure_propagates(self, work_dir, monkeypatch):
        def run(cmd, cwd, max_buffer=None):
            raise CommandError(cmd, 1, "", "npm ERR! 404 Not Found")
        monkeypatch.setattr(npm_pack, "run_command", run)
        with pytest.raises(CommandError, match="404"):
            npm_pack.pull_package("does-not-exist", str(work_dir))


class TestSplitPackageSpec:
    @pytest.mark.parametrize("spec, expected", [
        ("lodash", ("lodash", "latest")),
        ("lodash@4.17.21", ("lodash", "4.17.21")),
        ("lodash@", ("lodash", "latest")),
        ("@scope/pkg", ("@scope/pkg", "latest")),
        ("@scope/pkg@1.0.0-beta.1", ("@scope/pkg", "1.0.0-beta.1")),
    ])
    def test_split(self, spec, expected):
        assert npm_pack.split_package_spec(spec) == expected


class TestUnpackPackage:
    def test_unpacks_existing_archive(self, work_dir):
        write_tarball(work_dir / "pkg-1.0.0.tgz", {"package/package.json": "{}"})
        artifact = npm_pack.unpack_package("pkg-1.0.0.tgz", str(work_dir))
        assert artifact.extracted_folder == "./package"
        assert artifact.package_file == "pkg-1.0.0.tgz"
