"""
探针执行器

负责顺序执行探针序列，并保证运行结束时清理所有测试记录
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from ..models.exceptions import NetworkError, RemoteError, RunTimeoutError
from ..models.probe import Operation, Probe
from ..models.result import (
    CleanupFailure,
    CleanupSummary,
    ProbeResult,
    RawOutcome,
    VerificationReport,
)
from .interpreter import ConstraintInterpreter
from .report import ReportBuilder

logger = logging.getLogger(__name__)


class CleanupTracker:
    """
    单次运行内创建的记录列表

    仅由 ProbeExecutor 在一次 run 内持有
    """

    def __init__(self):
        self.records: List[Tuple[str, Any, str]] = []
        self.summary: CleanupSummary = CleanupSummary()

    def track(self, target: str, record_id: Any, id_column: str = "id") -> None:
        self.records.append((target, record_id, id_column))

    def __len__(self) -> int:
        return len(self.records)


class ProbeExecutor:
    """
    探针执行器

    负责:
    1. 严格按顺序执行探针（后面的探针可能依赖前面写入的数据）
    2. 把 RawOutcome 与探针期望比较，得到 ProbeResult
    3. insert 创建的记录在判断期望之前登记，运行结束时按 id 删除
    4. 网络错误或其他客户端异常中断剩余探针，超时在清理后抛出 RunTimeoutError

    单个探针未满足期望不会中断序列
    """

    def __init__(
        self,
        client,
        interpreter: Optional[ConstraintInterpreter] = None,
        builder: Optional[ReportBuilder] = None,
        clock=time.monotonic,
    ):
        """
        Args:
            client: RemoteStoreClient（或实现 execute/delete 的替身）
            interpreter: 约束解析器
            builder: 报告构建器
            clock: 计时函数（测试时可替换）
        """
        self.client = client
        self.interpreter = interpreter or ConstraintInterpreter()
        self.builder = builder or ReportBuilder()
        self.clock = clock

    def run(self, probes: Sequence[Probe], timeout: Optional[float] = None) -> VerificationReport:
        """
        执行探针序列

        Args:
            probes: 有序探针列表
            timeout: 整体超时（秒），None 表示不限制

        Returns:
            VerificationReport

        Raises:
            RunTimeoutError: 超时（已完成清理，e.report 为部分报告）
        """
        probes = list(probes)
        started = self.clock()
        deadline = started + timeout if timeout else None
        results: List[ProbeResult] = []
        abort_reason = None
        skipped = 0
        timeout_error = None

        logger.info(f"开始验证，共 {len(probes)} 个探针")

        with self._tracked_records() as tracker:
            try:
                abort_reason, skipped = self._run_sequence(probes, deadline, timeout, results, tracker)
            except RunTimeoutError as e:
                timeout_error = e
                abort_reason = str(e)
                skipped = e.skipped
            except Exception as e:
                # 客户端抛出的其他异常按中断处理，保证仍然输出报告
                logger.exception(f"执行探针时出现未预期的异常: {e}")
                abort_reason = f"unexpected error: {e}"
                skipped = len(probes) - len(results)

        report = self.builder.summarize(
            results,
            cleanup=tracker.summary,
            abort_reason=abort_reason,
            skipped=skipped,
            elapsed=self.clock() - started,
        )

        if timeout_error is not None:
            timeout_error.report = report
            raise timeout_error

        logger.info(f"验证完成: {report.status.value}，清理 {report.cleanup.removed}/{report.cleanup.tracked} 条记录")
        return report

    def _run_sequence(
        self,
        probes: List[Probe],
        deadline: Optional[float],
        timeout: Optional[float],
        results: List[ProbeResult],
        tracker: CleanupTracker,
    ) -> Tuple[Optional[str], int]:
        """执行探针，返回 (中断原因, 跳过数量)"""
        refs: Dict[str, Any] = {}

        for index, probe in enumerate(probes):
            if deadline is not None and self.clock() >= deadline:
                raise RunTimeoutError(
                    f"verification run exceeded {timeout}s before probe {index + 1} of {len(probes)}",
                    timeout=timeout,
                    skipped=len(probes) - index,
                )

            bound, missing_ref = self._bind(probe, refs)
            if missing_ref:
                logger.warning(f"探针 '{probe.label}' 引用的记录不可用: {probe.ref}")
                results.append(ProbeResult(
                    probe=probe,
                    succeeded=False,
                    detail=f"referenced record '{probe.ref}' is unavailable",
                ))
                continue

            call_started = self.clock()
            try:
                outcome = self.client.execute(bound)
            except NetworkError as e:
                logger.error(f"远程存储不可达，中断剩余探针: {e}")
                results.append(ProbeResult(
                    probe=bound,
                    succeeded=False,
                    raw_error=str(e),
                    detail="network error",
                    elapsed=self.clock() - call_started,
                ))
                return f"remote store unreachable: {e}", len(probes) - index - 1
            elapsed = self.clock() - call_started

            # 先登记再判断期望，保证意外成功的 insert 也会被清理
            if bound.operation is Operation.INSERT and outcome.created_id is not None:
                tracker.track(bound.target, outcome.created_id, bound.id_column)
                if bound.name:
                    refs[bound.name] = outcome.created_id
            elif bound.operation is Operation.INSERT and outcome.success:
                logger.warning(f"insert {bound.target} 未返回 {bound.id_column}，该记录无法自动清理")

            result = self.evaluate(bound, outcome, elapsed)
            logger.debug(f"{result.marker} {bound.label}")
            results.append(result)

        return None, 0

    def _bind(self, probe: Probe, refs: Dict[str, Any]) -> Tuple[Probe, bool]:
        """把 ref 绑定为具体记录 id"""
        if not probe.ref:
            return probe, False
        if probe.ref not in refs:
            return probe, True
        return probe.bind(refs[probe.ref]), False

    def evaluate(self, probe: Probe, outcome: RawOutcome, elapsed: float = 0.0) -> ProbeResult:
        """
        根据探针期望判断结果

        Args:
            probe: 探针
            outcome: 远程调用结果
            elapsed: 调用耗时

        Returns:
            ProbeResult
        """
        if not outcome.success:
            classification = self.interpreter.classify(outcome.message, outcome.code)
            if probe.expects_failure:
                succeeded = self.interpreter.matches(classification, probe.expect_kind, probe.expect_column)
                detail = None if succeeded else self._describe_mismatch(probe, classification)
            else:
                succeeded = False
                detail = "expected success"
            return ProbeResult(
                probe=probe,
                succeeded=succeeded,
                raw_error=outcome.message,
                classified_kind=classification.kind,
                created_record_id=outcome.created_id,
                column=classification.column,
                detail=detail,
                elapsed=elapsed,
            )

        if probe.expects_failure:
            expected = probe.expect_kind.value if probe.expect_kind else "a failure"
            return ProbeResult(
                probe=probe,
                succeeded=False,
                created_record_id=outcome.created_id,
                detail=f"expected {expected}, operation succeeded",
                elapsed=elapsed,
            )

        mismatch = self._check_fields(probe, outcome)
        return ProbeResult(
            probe=probe,
            succeeded=mismatch is None,
            created_record_id=outcome.created_id,
            detail=mismatch,
            elapsed=elapsed,
        )

    def _describe_mismatch(self, probe: Probe, classification) -> str:
        expected = probe.expect_kind.value if probe.expect_kind else "a failure"
        if probe.expect_column:
            expected = f"{expected} on column '{probe.expect_column}'"
        return f"expected {expected}, got {classification}"

    def _check_fields(self, probe: Probe, outcome: RawOutcome) -> Optional[str]:
        """校验返回记录的字段值"""
        if not probe.expect_fields:
            return None
        record = outcome.record
        if record is None:
            return "no record returned"
        problems = []
        for column, expected in probe.expect_fields.items():
            actual = record.get(column)
            if actual != expected:
                problems.append(f"{column}: expected {expected!r}, got {actual!r}")
        return "; ".join(problems) if problems else None

    @contextmanager
    def _tracked_records(self) -> Iterator[CleanupTracker]:
        """
        记录清理作用域

        无论正常结束、网络中断、超时还是其他异常，退出时都会删除已登记的记录
        """
        tracker = CleanupTracker()
        try:
            yield tracker
        finally:
            tracker.summary = self._cleanup(tracker)

    def _cleanup(self, tracker: CleanupTracker) -> CleanupSummary:
        """
        按创建的逆序删除记录（尽力而为，失败只记录不抛出）

        每条登记记录恰好发出一次 delete
        """
        removed = 0
        failures = []
        for target, record_id, id_column in reversed(tracker.records):
            try:
                count = self.client.delete(target, record_id, id_column)
            except (NetworkError, RemoteError) as e:
                logger.warning(f"清理失败 {target}#{record_id}: {e}")
                failures.append(CleanupFailure(target=target, record_id=record_id, message=str(e)))
                continue

            # RLS 拦截删除时 PostgREST 返回 200 和空列表
            if count:
                removed += 1
            else:
                logger.warning(f"清理失败 {target}#{record_id}: 删除影响 0 行")
                failures.append(CleanupFailure(target=target, record_id=record_id, message="delete affected 0 rows"))

        if tracker.records:
            logger.info(f"已清理 {removed}/{len(tracker.records)} 条测试记录")
        return CleanupSummary(tracked=len(tracker.records), removed=removed, failures=tuple(failures))
