"""
Schema-Probe 数据模型

包含探针定义、约束类型枚举、结果对象和异常类型
"""

from schema_probe.models.kind import ConstraintKind, REMEDIATION_HINTS
from schema_probe.models.probe import Expectation, Operation, Probe
from schema_probe.models.result import (
    CleanupFailure,
    CleanupSummary,
    Classification,
    ProbeResult,
    RawOutcome,
    ReportStatus,
    VerificationReport,
)
from schema_probe.models.exceptions import (
    ConfigurationError,
    NetworkError,
    ProbeError,
    ProbeSetError,
    RemoteError,
    RunTimeoutError,
)

__all__ = [
    "ConstraintKind",
    "REMEDIATION_HINTS",
    "Expectation",
    "Operation",
    "Probe",
    "CleanupFailure",
    "CleanupSummary",
    "Classification",
    "ProbeResult",
    "RawOutcome",
    "ReportStatus",
    "VerificationReport",
    "ConfigurationError",
    "NetworkError",
    "ProbeError",
    "ProbeSetError",
    "RemoteError",
    "RunTimeoutError",
]
