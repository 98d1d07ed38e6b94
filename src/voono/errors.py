"""Exceptions for fatal provisioning failures.

Anything raised from here aborts the run; the CLI reports the message and
exits with status 1. Tolerated failures never raise (see ``CommandRunner.tolerate``).
"""

from typing import Optional


class VoonoError(Exception):
    """Base exception for fatal failures"""

    pass


class PrivilegeError(VoonoError):
    """Not running as root"""

    pass


class UnsupportedArchitectureError(VoonoError):
    """CPU architecture has no matching binaries"""

    def __init__(self, arch: str):
        super().__init__(f"Unsupported architecture: {arch} (only amd64/arm64).")
        self.arch = arch


class CommandError(VoonoError):
    """External command exited with an unexpected status"""

    def __init__(self, command, returncode: int, stderr: Optional[str] = None):
        message = f"Command failed with code {returncode}: {command}"
        if stderr:
            message = f"{message}\n{stderr.strip()}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class DownloadError(VoonoError):
    """HTTP download failed"""

    pass


class DomainRequiredError(VoonoError):
    """No domain given for the TLS certificate"""

    pass


class CertificateError(VoonoError):
    """certbot could not issue the certificate"""

    pass


class ConfigValidationError(VoonoError):
    """nginx rejected the generated configuration"""

    pass


class ProfileMissingError(VoonoError):
    """wgcf did not produce a WireGuard profile"""

    pass


class ConfigError(VoonoError):
    """Configuration file is unreadable or has bad values"""

    pass


class ResolverError(VoonoError):
    """resolv.conf could not be replaced"""

    pass
