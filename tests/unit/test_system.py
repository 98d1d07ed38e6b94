"""Tests for the privilege and architecture guard"""

import pytest

from voono.errors import PrivilegeError, UnsupportedArchitectureError
from voono.system import Architecture, detect_arch, normalize_arch, require_root


class TestArchitecture:
    """Architecture name mapping"""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("amd64", Architecture.AMD64),
            ("x86_64", Architecture.AMD64),
            ("arm64", Architecture.ARM64),
            ("aarch64", Architecture.ARM64),
            ("amd64\n", Architecture.AMD64),
            ("AARCH64", Architecture.ARM64),
        ],
    )
    def test_supported(self, raw, expected):
        assert normalize_arch(raw) is expected

    @pytest.mark.parametrize("raw", ["i386", "armhf", "riscv64", ""])
    def test_unsupported_is_fatal(self, raw):
        with pytest.raises(UnsupportedArchitectureError) as exc:
            normalize_arch(raw)
        assert "only amd64/arm64" in str(exc.value)

    def test_detect_uses_dpkg(self, runner):
        runner.on("dpkg", stdout="arm64\n")
        assert detect_arch(runner) is Architecture.ARM64
        assert runner.argvs == [("dpkg", "--print-architecture")]

    def test_detect_unsupported_runs_nothing_else(self, runner):
        runner.on("dpkg", stdout="s390x\n")
        with pytest.raises(UnsupportedArchitectureError):
            detect_arch(runner)
        assert len(runner.commands) == 1

    def test_tag_values(self):
        assert Architecture.AMD64.value == "amd64"
        assert Architecture.ARM64.value == "arm64"


class TestRequireRoot:
    """Root check"""

    def test_root_passes(self):
        require_root(geteuid=lambda: 0)

    def test_non_root_fails(self):
        with pytest.raises(PrivilegeError) as exc:
            require_root(geteuid=lambda: 1000)
        assert "root" in str(exc.value)
