"""
Tests for the Bun setup pipeline.

Network access is mocked with responses; archives are small fake releases.
"""

import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest
import responses

from bunkit.core.download import asset_url
from bunkit.core.exceptions import (
    ChecksumUnavailable,
    DownloadFailure,
    ExecutableNotFound,
    ExtractionFailure,
    IntegrityMismatch,
)
from bunkit.core.locking import LockManager
from bunkit.core.platform import BunSystem
from bunkit.core.verification import metadata_url, shasums_url
from bunkit.runtime.setup import BunInstallation, SetupState, setup_bun
from tests.fixtures.archives import bun_zip_bytes, release_page, sha256_hex


def _mock_release(version, system, payload, digest=None):
    """Register asset and metadata responses for one release."""
    responses.add(responses.GET, asset_url(version, system), body=payload, status=200)
    responses.add(
        responses.GET,
        metadata_url(version),
        body=release_page({system.zip_name: digest or sha256_hex(payload)}),
        status=200,
    )


class TestBunInstallation:
    """Tests for BunInstallation paths."""

    def test_paths(self, tmp_path):
        installation = BunInstallation(tmp_path, " 1.1.0 ", BunSystem.LINUX_X64)

        assert installation.version == "1.1.0"
        assert installation.install_dir == tmp_path / "1.1.0"
        assert installation.variant_dir == tmp_path / "1.1.0" / "bun-linux-x64"
        assert installation.asset_path == tmp_path / "1.1.0" / "bun-linux-x64.zip"
        assert installation.key == "1.1.0-bun-linux-x64"
        assert installation.download_url == (
            "https://github.com/oven-sh/bun/releases/download/"
            "bun-v1.1.0/bun-linux-x64.zip"
        )

    def test_blank_version_is_latest(self, tmp_path):
        installation = BunInstallation(tmp_path, None, BunSystem.DARWIN_AARCH64)

        assert installation.version == "latest"
        assert installation.install_dir == tmp_path / "latest"

    def test_construction_touches_nothing(self, tmp_path):
        root = tmp_path / "not-yet"
        installation = BunInstallation(root, "1.1.0", BunSystem.LINUX_X64)

        assert installation.find_executable() is None
        assert not root.exists()

    def test_require_executable_missing(self, tmp_path):
        installation = BunInstallation(tmp_path, "1.1.0", BunSystem.LINUX_X64)

        with pytest.raises(ExecutableNotFound) as exc_info:
            installation.require_executable()

        assert exc_info.value.exit_code == 6
        assert "bun-linux-x64" in str(exc_info.value)

    def test_variants_of_same_version_are_separate(self, tmp_path):
        glibc = BunInstallation(tmp_path, "1.1.0", BunSystem.LINUX_X64)
        musl = BunInstallation(tmp_path, "1.1.0", BunSystem.LINUX_X64_MUSL)

        exe = glibc.variant_dir / "bun"
        exe.parent.mkdir(parents=True)
        exe.write_text("")

        assert glibc.find_executable() == exe
        assert musl.find_executable() is None


class TestSetupBun:
    """Tests for setup_bun()."""

    @responses.activate
    def test_installs(self, install_root, linux_zip_bytes):
        _mock_release("1.1.0", BunSystem.LINUX_X64, linux_zip_bytes)
        installation = BunInstallation(install_root, "1.1.0", BunSystem.LINUX_X64)

        result = setup_bun(installation)

        expected_exe = install_root / "1.1.0" / "bun-linux-x64" / "bun"
        assert result.state is SetupState.INSTALLED
        assert result.executable == expected_exe
        assert result.downloaded is True
        assert result.sha256 == sha256_hex(linux_zip_bytes)
        assert result.was_cached is False
        assert expected_exe.exists()
        # Asset is transient
        assert not installation.asset_path.exists()

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    @responses.activate
    def test_executable_bit_set(self, install_root, linux_zip_bytes):
        _mock_release("1.1.0", BunSystem.LINUX_X64, linux_zip_bytes)
        installation = BunInstallation(install_root, "1.1.0", BunSystem.LINUX_X64)

        result = setup_bun(installation)

        assert os.access(result.executable, os.X_OK)

    @responses.activate
    def test_idempotent(self, install_root, linux_zip_bytes):
        _mock_release("1.1.0", BunSystem.LINUX_X64, linux_zip_bytes)
        installation = BunInstallation(install_root, "1.1.0", BunSystem.LINUX_X64)

        first = setup_bun(installation)
        calls_after_first = len(responses.calls)

        second = setup_bun(installation)

        assert second.state is SetupState.ALREADY_INSTALLED
        assert second.was_cached is True
        assert second.executable == first.executable
        assert second.downloaded is False
        assert len(responses.calls) == calls_after_first

    @responses.activate
    def test_latest(self, install_root):
        payload = bun_zip_bytes(BunSystem.DARWIN_AARCH64)
        _mock_release("latest", BunSystem.DARWIN_AARCH64, payload)
        installation = BunInstallation(install_root, "", BunSystem.DARWIN_AARCH64)

        result = setup_bun(installation)

        assert result.executable == (
            install_root / "latest" / "bun-darwin-aarch64" / "bun"
        )
        assert responses.calls[0].request.url.endswith(
            "/releases/latest/download/bun-darwin-aarch64.zip"
        )

    @responses.activate
    def test_explicit_sha256_skips_metadata(self, install_root, linux_zip_bytes):
        responses.add(
            responses.GET,
            asset_url("1.1.0", BunSystem.LINUX_X64),
            body=linux_zip_bytes,
            status=200,
        )
        installation = BunInstallation(install_root, "1.1.0", BunSystem.LINUX_X64)

        result = setup_bun(installation, expected_sha256=sha256_hex(linux_zip_bytes))

        assert result.state is SetupState.INSTALLED
        assert len(responses.calls) == 1

    @responses.activate
    def test_reuses_asset_on_disk(self, install_root, linux_zip_bytes):
        responses.add(
            responses.GET,
            metadata_url("1.1.0"),
            body=release_page({"bun-linux-x64.zip": sha256_hex(linux_zip_bytes)}),
            status=200,
        )
        installation = BunInstallation(install_root, "1.1.0", BunSystem.LINUX_X64)
        installation.install_dir.mkdir(parents=True)
        installation.asset_path.write_bytes(linux_zip_bytes)

        result = setup_bun(installation)

        assert result.downloaded is False
        assert result.state is SetupState.INSTALLED
        assert all("oven-sh" not in call.request.url for call in responses.calls)

    @responses.activate
    def test_corrupted_asset_deleted(self, install_root, linux_zip_bytes):
        corrupted = bytearray(linux_zip_bytes)
        corrupted[len(corrupted) // 2] ^= 0x01

        installation = BunInstallation(install_root, "1.1.0", BunSystem.LINUX_X64)
        installation.install_dir.mkdir(parents=True)
        installation.asset_path.write_bytes(bytes(corrupted))

        with pytest.raises(IntegrityMismatch) as exc_info:
            setup_bun(installation, expected_sha256=sha256_hex(linux_zip_bytes))

        assert exc_info.value.expected == sha256_hex(linux_zip_bytes)
        assert exc_info.value.actual == sha256_hex(bytes(corrupted))
        assert not installation.asset_path.exists()
        assert installation.find_executable() is None

    @responses.activate
    def test_tampered_download(self, install_root, linux_zip_bytes):
        _mock_release(
            "1.1.0", BunSystem.LINUX_X64, linux_zip_bytes, digest="0" * 64
        )
        installation = BunInstallation(install_root, "1.1.0", BunSystem.LINUX_X64)

        with pytest.raises(IntegrityMismatch):
            setup_bun(installation)

        assert not installation.asset_path.exists()
        assert not installation.variant_dir.exists()

    @responses.activate
    def test_checksum_unavailable(self, install_root, linux_zip_bytes):
        responses.add(
            responses.GET,
            asset_url("1.1.0", BunSystem.LINUX_X64),
            body=linux_zip_bytes,
            status=200,
        )
        responses.add(
            responses.GET,
            metadata_url("1.1.0"),
            body=release_page({"bun-darwin-x64.zip": "ab" * 32}),
            status=200,
        )
        installation = BunInstallation(install_root, "1.1.0", BunSystem.LINUX_X64)

        with pytest.raises(ChecksumUnavailable):
            setup_bun(installation)

        assert installation.find_executable() is None
        assert not installation.asset_path.exists()

    @responses.activate
    def test_digest_from_shasums_file(self, install_root, linux_zip_bytes):
        """The release's SHASUMS256.txt is used when the page lists no digest."""
        responses.add(
            responses.GET,
            asset_url("1.1.0", BunSystem.LINUX_X64),
            body=linux_zip_bytes,
            status=200,
        )
        responses.add(
            responses.GET, metadata_url("1.1.0"), body="<html></html>", status=200
        )
        responses.add(
            responses.GET,
            shasums_url("1.1.0"),
            body=f"{sha256_hex(linux_zip_bytes)}  bun-linux-x64.zip\n",
            status=200,
        )
        installation = BunInstallation(install_root, "1.1.0", BunSystem.LINUX_X64)

        result = setup_bun(installation)

        assert result.state is SetupState.INSTALLED
        assert result.sha256 == sha256_hex(linux_zip_bytes)

    @responses.activate
    def test_malformed_sha256_fails_before_download(self, install_root):
        installation = BunInstallation(install_root, "1.1.0", BunSystem.LINUX_X64)

        with pytest.raises(ChecksumUnavailable, match="invalid sha256"):
            setup_bun(installation, expected_sha256="not-a-digest")

        assert len(responses.calls) == 0
        assert not installation.asset_path.exists()

    @responses.activate
    def test_download_failure(self, install_root):
        responses.add(
            responses.GET, asset_url("0.0.1", BunSystem.LINUX_X64), status=404
        )
        installation = BunInstallation(install_root, "0.0.1", BunSystem.LINUX_X64)

        with pytest.raises(DownloadFailure) as exc_info:
            setup_bun(installation)

        assert "bun-v0.0.1/bun-linux-x64.zip" in exc_info.value.url

    @responses.activate
    def test_unexpected_layout(self, install_root):
        # Executable for the wrong variant directory
        payload = bun_zip_bytes(BunSystem.LINUX_X64_BASELINE)
        _mock_release("1.1.0", BunSystem.LINUX_X64, payload)
        installation = BunInstallation(install_root, "1.1.0", BunSystem.LINUX_X64)

        with pytest.raises(ExecutableNotFound):
            setup_bun(installation)

    @responses.activate
    def test_extraction_failure(self, install_root):
        payload = b"not really a zip"
        _mock_release("1.1.0", BunSystem.LINUX_X64, payload)
        installation = BunInstallation(install_root, "1.1.0", BunSystem.LINUX_X64)

        with pytest.raises(ExtractionFailure):
            setup_bun(installation)

    @responses.activate
    def test_uses_install_lock(self, install_root, linux_zip_bytes):
        _mock_release("1.1.0", BunSystem.LINUX_X64, linux_zip_bytes)
        installation = BunInstallation(install_root, "1.1.0", BunSystem.LINUX_X64)
        lock_manager = LockManager(install_root / ".locks")

        setup_bun(installation, lock_manager=lock_manager)

        assert lock_manager.lock_path(installation.key).parent.is_dir()

    def test_waits_then_sees_other_install(self, install_root, monkeypatch):
        """Setup finishing in another process while we wait is not repeated."""
        installation = BunInstallation(install_root, "1.1.0", BunSystem.LINUX_X64)
        real_lock = LockManager.install_lock

        def lock_and_install(self, key, timeout=300):
            # Simulate the other process completing before we get the lock
            exe = installation.variant_dir / "bun"
            exe.parent.mkdir(parents=True, exist_ok=True)
            exe.write_text("")
            return real_lock(self, key, timeout)

        monkeypatch.setattr(LockManager, "install_lock", lock_and_install)

        result = setup_bun(installation)

        assert result.state is SetupState.ALREADY_INSTALLED

    def test_concurrent_setups_download_once(self, install_root, linux_zip_bytes):
        """Workers racing on one installation key download and install once."""
        downloads = []
        downloads_lock = threading.Lock()

        def slow_download(url, destination, timeout=30, progress_callback=None):
            with downloads_lock:
                downloads.append(url)
            time.sleep(0.2)
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(linux_zip_bytes)
            return destination

        def worker(_):
            installation = BunInstallation(install_root, "1.1.0", BunSystem.LINUX_X64)
            return setup_bun(
                installation,
                expected_sha256=sha256_hex(linux_zip_bytes),
                lock_timeout=30,
            )

        with patch("bunkit.runtime.setup.download_file", side_effect=slow_download):
            with ThreadPoolExecutor(max_workers=4) as pool:
                results = list(pool.map(worker, range(4)))

        states = [result.state for result in results]
        assert len(downloads) == 1
        assert states.count(SetupState.INSTALLED) == 1
        assert states.count(SetupState.ALREADY_INSTALLED) == 3
        assert len({result.executable for result in results}) == 1
