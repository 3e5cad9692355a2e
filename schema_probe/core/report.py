"""
报告构建器

负责把 ProbeResult 列表聚合为 VerificationReport，并生成可读文本
"""

import json
from datetime import datetime
from typing import List, Optional, Sequence

from ..models.kind import ConstraintKind
from ..models.result import (
    CleanupSummary,
    ProbeResult,
    ReportStatus,
    VerificationReport,
)


class ReportBuilder:
    """
    报告构建器

    1. 判断整体状态（全部满足期望才是 AllPassed）
    2. 逐个探针输出通过/失败行
    3. 按出现的约束类型输出修复建议
    4. 明确输出清理数量
    """

    def summarize(
        self,
        results: Sequence[ProbeResult],
        cleanup: Optional[CleanupSummary] = None,
        abort_reason: Optional[str] = None,
        skipped: int = 0,
        elapsed: float = 0.0,
    ) -> VerificationReport:
        """
        聚合一次运行的结果

        Args:
            results: 有序的探针结果
            cleanup: 清理统计
            abort_reason: 中断原因（网络错误或超时）
            skipped: 未执行的探针数量
            elapsed: 总耗时（秒）

        Returns:
            VerificationReport
        """
        results = tuple(results)
        all_passed = all(r.succeeded for r in results) and abort_reason is None
        status = ReportStatus.ALL_PASSED if all_passed else ReportStatus.SOME_FAILED

        return VerificationReport(
            results=results,
            status=status,
            cleanup=cleanup or CleanupSummary(),
            aborted=abort_reason is not None,
            abort_reason=abort_reason,
            skipped=skipped,
            elapsed=elapsed,
            executed_at=datetime.now(),
        )

    def render(self, report: VerificationReport) -> str:
        """生成可读的报告文本"""
        lines = [
            "Schema verification report",
            "==========================",
        ]
        for index, result in enumerate(report.results, 1):
            lines.extend(self._render_result(index, result))

        if report.skipped:
            lines.append(f"   ({report.skipped} probe(s) not executed)")

        kinds = self._failed_kinds(report.results)
        if kinds:
            lines.append("")
            lines.append("Remediation hints:")
            width = max(len(k.value) for k in kinds)
            for kind in kinds:
                lines.append(f"  {kind.value.ljust(width)}  {kind.remediation}")

        lines.append("")
        lines.append(self._render_cleanup(report.cleanup))

        if report.aborted:
            lines.append(f"Run aborted: {report.abort_reason}")

        passed = sum(1 for r in report.results if r.succeeded)
        lines.append(
            f"Status: {report.status.value} ({passed}/{len(report.results)} probes met expectations, "
            f"{report.elapsed:.2f}s)"
        )
        return "\n".join(lines)

    def render_json(self, report: VerificationReport) -> str:
        """生成 JSON 报告"""
        return json.dumps(report.to_dict(), ensure_ascii=False, indent=2, default=str)

    def _render_result(self, index: int, result: ProbeResult) -> List[str]:
        probe = result.probe
        line = f"{index:>2}. {result.marker} {probe.operation.value} {probe.target}: {probe.label}"
        lines = [line]
        if result.succeeded:
            return lines

        if result.classified_kind is not None:
            kind_text = result.classified_kind.value
            if result.column:
                kind_text += f" (column: {result.column})"
            lines.append(f"      kind: {kind_text}")
        if result.detail:
            lines.append(f"      reason: {result.detail}")
        # 未识别的错误原样输出，便于扩展规则表
        if result.raw_error and result.classified_kind in (None, ConstraintKind.UNKNOWN):
            lines.append(f"      error: {result.raw_error}")
        return lines

    def _render_cleanup(self, cleanup: CleanupSummary) -> str:
        text = f"Cleanup: {cleanup.removed} test records removed"
        if cleanup.tracked != cleanup.removed:
            text += f" ({cleanup.tracked - cleanup.removed} of {cleanup.tracked} could NOT be removed)"
            for failure in cleanup.failures:
                text += f"\n  - {failure.target} {failure.record_id}: {failure.message}"
        return text

    def _failed_kinds(self, results: Sequence[ProbeResult]) -> List[ConstraintKind]:
        """未满足期望的结果中出现的约束类型（保持枚举顺序）"""
        seen = {r.classified_kind for r in results if not r.succeeded and r.classified_kind}
        return [kind for kind in ConstraintKind if kind in seen]
