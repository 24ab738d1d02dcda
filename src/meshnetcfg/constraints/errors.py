"""Error types: input validation exceptions and constraint violations.

Input problems (a bad hostname, an unknown NIC) are raised as
MeshConfigError subclasses and abort the run before anything is written.
Checks over generated or deployed files collect ConstraintViolations
into a ValidationResult so that every problem is reported at once.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class MeshConfigError(Exception):
    """Base class for every error this package raises deliberately."""

    code = "mesh_config_error"


class InvalidHostname(MeshConfigError, ValueError):
    code = "invalid_hostname"


class InvalidNodeId(MeshConfigError, ValueError):
    code = "invalid_node_id"


class InvalidIp(MeshConfigError, ValueError):
    code = "invalid_ip"


class InvalidInterfaceName(MeshConfigError, ValueError):
    code = "invalid_interface_name"


class InterfaceNotFound(MeshConfigError):
    code = "interface_not_found"

    def __init__(self, name: str) -> None:
        super().__init__(f"Interface {name} not found")
        self.name = name


class BackupFailed(MeshConfigError):
    code = "backup_failed"


class NoBackupFound(MeshConfigError):
    code = "no_backup_found"


class ApplyFailed(MeshConfigError):
    """An external command (ifreload, systemctl, ...) exited non-zero."""

    code = "apply_failed"

    def __init__(self, command: list[str], returncode: int, stderr: str = "") -> None:
        cmd = " ".join(command)
        detail = f": {stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(f"'{cmd}' failed with exit code {returncode}{detail}")
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class GeneratedConfigInvalid(MeshConfigError):
    """Rendered configuration failed its own consistency checks."""

    code = "generated_config_invalid"

    def __init__(self, result: ValidationResult) -> None:
        super().__init__(result.report())
        self.result = result


class Severity(enum.Enum):
    """Constraint violation severity."""

    ERROR = "error"      # Abort before writing
    WARNING = "warning"  # Continue + report


@dataclass(frozen=True)
class ConstraintViolation:
    """A single constraint violation with context.

    Attributes:
        severity: Whether this should abort the run or just warn.
        code: Machine-readable violation code (e.g. 'duplicate_vlan_tag').
        message: Human-readable description of the violation.
        record_id: What the violation is about (e.g. 'vmbr2.55' or
            'interfaces:42' for file name + line number).
        field: Optional option name that caused the violation.
    """

    severity: Severity
    code: str
    message: str
    record_id: str = ""
    field: str = ""

    def __str__(self) -> str:
        prefix = self.severity.value.upper()
        loc = f" [{self.record_id}]" if self.record_id else ""
        return f"{prefix}{loc}: {self.message}"


@dataclass
class ValidationResult:
    """Aggregated result of running constraints.

    Collects all violations and provides summary methods.
    """

    violations: list[ConstraintViolation]

    def __init__(self) -> None:
        self.violations = []

    def add(self, violation: ConstraintViolation) -> None:
        self.violations.append(violation)

    def extend(self, other: ValidationResult) -> None:
        for violation in other.violations:
            self.add(violation)

    def error(self, code: str, message: str, record_id: str = "", field: str = "") -> None:
        self.add(ConstraintViolation(Severity.ERROR, code, message, record_id, field))

    def warning(self, code: str, message: str, record_id: str = "", field: str = "") -> None:
        self.add(ConstraintViolation(Severity.WARNING, code, message, record_id, field))

    @property
    def errors(self) -> list[ConstraintViolation]:
        return [v for v in self.violations if v.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ConstraintViolation]:
        return [v for v in self.violations if v.severity == Severity.WARNING]

    @property
    def has_errors(self) -> bool:
        return any(v.severity == Severity.ERROR for v in self.violations)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> list[str]:
        return [v.code for v in self.violations]

    def report(self) -> str:
        """Generate a human-readable report of all violations."""
        if not self.violations:
            return "No violations found."

        lines = []
        errors = self.errors
        warnings = self.warnings
        if errors:
            lines.append(f"{len(errors)} error(s):")
            for v in errors:
                lines.append(f"  {v}")
        if warnings:
            lines.append(f"{len(warnings)} warning(s):")
            for v in warnings:
                lines.append(f"  {v}")
        return "\n".join(lines)
