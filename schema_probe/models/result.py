"""
探针执行结果对象

定义 RawOutcome、Classification、ProbeResult、CleanupSummary 和 VerificationReport
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .kind import ConstraintKind
from .probe import Probe


@dataclass(frozen=True)
class RawOutcome:
    """
    远程存储单次调用的原始结果

    成功时携带返回记录，失败时携带远程错误信息（原样透传，供分类使用）
    """
    success: bool
    record: Optional[Dict[str, Any]] = None
    records: Tuple[Dict[str, Any], ...] = ()
    message: Optional[str] = None
    code: Optional[str] = None
    created_id: Any = None

    @classmethod
    def ok(cls, records: List[Dict[str, Any]], created_id: Any = None) -> "RawOutcome":
        records = tuple(records or ())
        return cls(
            success=True,
            record=records[0] if records else None,
            records=records,
            created_id=created_id,
        )

    @classmethod
    def failure(cls, message: str, code: Optional[str] = None) -> "RawOutcome":
        return cls(success=False, message=message, code=code)


@dataclass(frozen=True)
class Classification:
    """错误分类结果"""
    kind: ConstraintKind
    column: Optional[str] = None
    detail: Optional[str] = None

    def __str__(self) -> str:
        if self.column:
            return f"{self.kind.value} (column: {self.column})"
        if self.detail:
            return f"{self.kind.value} ({self.detail})"
        return self.kind.value


@dataclass(frozen=True)
class ProbeResult:
    """
    单个探针的执行结果

    Attributes:
        probe: 执行的探针（已绑定 record_id）
        succeeded: 是否满足探针的期望
        raw_error: 远程错误原文
        classified_kind: 错误分类（仅远程拒绝时）
        created_record_id: insert 创建的记录 id
        column: 分类时提取到的列名
        detail: 期望未满足的原因
        elapsed: 调用耗时（秒）
    """
    probe: Probe
    succeeded: bool
    raw_error: Optional[str] = None
    classified_kind: Optional[ConstraintKind] = None
    created_record_id: Any = None
    column: Optional[str] = None
    detail: Optional[str] = None
    elapsed: float = 0.0

    def __bool__(self) -> bool:
        return self.succeeded

    @property
    def marker(self) -> str:
        return "✅" if self.succeeded else "❌"

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典（便于序列化）"""
        return {
            "probe": self.probe.to_dict(),
            "succeeded": self.succeeded,
            "raw_error": self.raw_error,
            "classified_kind": self.classified_kind.value if self.classified_kind else None,
            "column": self.column,
            "created_record_id": self.created_record_id,
            "detail": self.detail,
            "elapsed": round(self.elapsed, 3),
        }


@dataclass(frozen=True)
class CleanupFailure:
    """清理失败的记录"""
    target: str
    record_id: Any
    message: str


@dataclass(frozen=True)
class CleanupSummary:
    """
    清理统计

    tracked 等于清理阶段发出的 delete 调用次数
    """
    tracked: int = 0
    removed: int = 0
    failures: Tuple[CleanupFailure, ...] = ()

    @property
    def complete(self) -> bool:
        return self.removed == self.tracked

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tracked": self.tracked,
            "removed": self.removed,
            "failures": [
                {"target": f.target, "record_id": f.record_id, "message": f.message}
                for f in self.failures
            ],
        }


class ReportStatus(str, Enum):
    """验证整体状态"""
    ALL_PASSED = "AllPassed"
    SOME_FAILED = "SomeFailed"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class VerificationReport:
    """
    一次验证运行的汇总报告

    构造后不可变
    """
    results: Tuple[ProbeResult, ...]
    status: ReportStatus
    cleanup: CleanupSummary = field(default_factory=CleanupSummary)
    aborted: bool = False
    abort_reason: Optional[str] = None
    skipped: int = 0
    elapsed: float = 0.0
    executed_at: datetime = field(default_factory=datetime.now)

    def __bool__(self) -> bool:
        """允许 if report: 判断是否全部通过"""
        return self.passed

    @property
    def passed(self) -> bool:
        return self.status is ReportStatus.ALL_PASSED

    @property
    def failed_results(self) -> List[ProbeResult]:
        return [r for r in self.results if not r.succeeded]

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    @property
    def formatted_timestamp(self) -> str:
        return self.executed_at.strftime("%Y-%m-%d %H:%M:%S")

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典（便于序列化）"""
        return {
            "status": self.status.value,
            "results": [r.to_dict() for r in self.results],
            "cleanup": self.cleanup.to_dict(),
            "aborted": self.aborted,
            "abort_reason": self.abort_reason,
            "skipped": self.skipped,
            "elapsed": round(self.elapsed, 3),
            "executed_at": self.formatted_timestamp,
        }

    def __repr__(self) -> str:
        return (
            f"VerificationReport(status={self.status.value}, results={len(self.results)}, "
            f"removed={self.cleanup.removed}/{self.cleanup.tracked}, aborted={self.aborted})"
        )
