"""
Pre-flight checks run before the API accepts traffic.

Remote backends being down is survivable (the gateway falls back to the
local store), so those findings are warnings. Critical findings are a
chain with no usable backend at all, or an auth configuration that cannot
sign tokens safely.

    result = await StartupValidator(gateway, config).validate_all(fail_fast=False)
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from ..config import AppConfig

# Placeholder secret from local setups; never acceptable in production
DEFAULT_JWT_SECRET = "change-me"
MIN_JWT_SECRET_LENGTH = 32


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"


@dataclass
class Finding:
    """One problem found by a check, with the setting to change."""

    component: str
    message: str
    severity: Severity
    details: Dict[str, Any] = field(default_factory=dict)
    fix: Optional[str] = None

    def __str__(self) -> str:
        text = f"[{self.severity.value}] {self.component}: {self.message}"
        if self.fix:
            text += f" (fix: {self.fix})"
        return text

    def brief(self) -> Dict[str, str]:
        return {"component": self.component, "message": self.message, "level": self.severity.value}


@dataclass
class ValidationResult:
    errors: List[Finding] = field(default_factory=list)
    warnings: List[Finding] = field(default_factory=list)
    validations_run: int = 0
    validations_passed: int = 0
    duration_seconds: float = 0.0

    @property
    def is_healthy(self) -> bool:
        return not self.errors

    def record(self, findings: List[Finding]) -> None:
        self.validations_run += 1
        for finding in findings:
            (self.errors if finding.severity is Severity.CRITICAL else self.warnings).append(finding)
        if not any(f.severity is Severity.CRITICAL for f in findings):
            self.validations_passed += 1

    def summary(self) -> str:
        return (
            f"{'healthy' if self.is_healthy else 'UNHEALTHY'}: "
            f"{self.validations_passed}/{self.validations_run} checks passed in {self.duration_seconds:.2f}s, "
            f"{len(self.errors)} critical, {len(self.warnings)} warnings"
        )


class StartupValidationError(Exception):
    """Raised by ``validate_all(fail_fast=True)`` when a critical finding exists."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__("; ".join(str(e) for e in result.errors))


Check = Callable[[], Awaitable[List[Finding]]]


class StartupValidator:
    """Runs the auth, data-backend and email checks against a gateway and config."""

    def __init__(self, gateway, config: AppConfig):
        self.gateway = gateway
        self.config = config
        self.logger = logging.getLogger(__name__)

    def _checks(self) -> List[Tuple[str, Check]]:
        return [
            ("Configuration", self._check_configuration),
            ("Data Backends", self._check_backends),
            ("Email", self._check_email),
        ]

    async def validate_all(self, fail_fast: bool = True) -> ValidationResult:
        started = time.perf_counter()
        result = ValidationResult()

        for component, check in self._checks():
            try:
                findings = await check()
            except Exception as e:
                self.logger.error("%s check crashed", component, exc_info=True)
                findings = [Finding(
                    component=component,
                    message=f"Check crashed: {e}",
                    severity=Severity.CRITICAL,
                    details={"error_type": type(e).__name__},
                )]
            result.record(findings)

        result.duration_seconds = time.perf_counter() - started
        self.logger.info("Startup checks: %s", result.summary())

        if fail_fast and not result.is_healthy:
            raise StartupValidationError(result)
        return result

    async def _check_configuration(self) -> List[Finding]:
        findings: List[Finding] = []
        secret = self.config.jwt_secret_key or ""

        if not secret:
            findings.append(Finding(
                "Configuration", "JWT secret is not configured", Severity.CRITICAL, fix="set JWT_SECRET_KEY",
            ))
        elif self.config.is_production and secret == DEFAULT_JWT_SECRET:
            findings.append(Finding(
                "Configuration", "Default JWT secret used in production", Severity.CRITICAL,
                fix="set JWT_SECRET_KEY to a long random value",
            ))
        elif len(secret) < MIN_JWT_SECRET_LENGTH:
            findings.append(Finding(
                "Configuration", "JWT secret is shorter than recommended", Severity.WARNING,
                details={"length": len(secret), "recommended": MIN_JWT_SECRET_LENGTH},
            ))

        if self.config.cosmos_enabled and not self.config.cosmos_endpoint:
            findings.append(Finding(
                "Configuration", "Cosmos DB enabled but no endpoint configured", Severity.WARNING,
                fix="set COSMOS_ENDPOINT or COSMOS_ENABLED=false",
            ))

        if self.config.seed_demo_data and self.config.is_production:
            findings.append(Finding(
                "Configuration", "Demo data seeding is enabled in production", Severity.WARNING,
                fix="set SEED_DEMO_DATA=false",
            ))
        return findings

    async def _check_backends(self) -> List[Finding]:
        statuses = await self.gateway.backend_status()
        findings = [
            Finding(
                "Data Backends",
                f"Backend '{status['name']}' is unavailable, requests will fall back",
                Severity.WARNING,
                details=status,
            )
            for status in statuses
            if not status["available"]
        ]
        if not any(status["available"] for status in statuses):
            findings.append(Finding(
                "Data Backends", "No data backend is available", Severity.CRITICAL,
                details={"backends": [s["name"] for s in statuses]},
                fix="check LOCAL_STORE_PATH is writable and the remote backend settings",
            ))
        return findings

    async def _check_email(self) -> List[Finding]:
        """SMTP is optional; half-configured SMTP only warns since emails are still recorded."""
        if not self.config.smtp_host:
            return []
        findings: List[Finding] = []
        if bool(self.config.smtp_username) != bool(self.config.smtp_password):
            findings.append(Finding(
                "Email", "SMTP username and password must be set together", Severity.WARNING,
                fix="set both SMTP_USERNAME and SMTP_PASSWORD, or neither",
            ))
        if not self.config.email_from_address:
            findings.append(Finding(
                "Email", "SMTP configured without a sender address", Severity.WARNING,
                fix="set EMAIL_FROM_ADDRESS",
            ))
        return findings

    async def health_check(self) -> Dict[str, Any]:
        """Report for ``GET /api/system/validation``."""
        result = await self.validate_all(fail_fast=False)
        return {
            "status": "healthy" if result.is_healthy else "unhealthy",
            "checks": {
                "total": result.validations_run,
                "passed": result.validations_passed,
                "failed": len(result.errors),
                "warnings": len(result.warnings),
            },
            "duration_seconds": round(result.duration_seconds, 4),
            "errors": [e.brief() for e in result.errors],
            "warnings": [w.brief() for w in result.warnings],
        }
