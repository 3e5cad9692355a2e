"""
Schema-Probe 异常类型

定义验证运行过程中可能抛出的各种异常
"""

from typing import Optional, List, TYPE_CHECKING

if TYPE_CHECKING:
    from .result import VerificationReport


class ProbeError(Exception):
    """
    探针基础异常

    所有 Schema-Probe 异常的基类
    """
    pass


class ConfigurationError(ProbeError):
    """
    配置错误

    连接参数缺失或格式错误，在任何探针执行前抛出
    """

    def __init__(self, message: str, problems: List[str] = None):
        """
        Args:
            message: 错误消息
            problems: 逐项问题描述
        """
        super().__init__(message)
        self.problems = problems or []

    def __str__(self) -> str:
        base = super().__str__()
        if self.problems:
            lines = [base] + [f"  - {p}" for p in self.problems]
            return "\n".join(lines)
        return base


class ProbeSetError(ConfigurationError):
    """
    探针集定义错误

    探针集文件不存在、不是合法 JSON 或字段不合法
    """

    def __init__(self, message: str, source: str = "", problems: List[str] = None):
        super().__init__(message, problems=problems)
        self.source = source


class NetworkError(ProbeError):
    """
    网络错误

    连接失败或超时，远程存储不可达时中断剩余探针
    """

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class RemoteError(ProbeError):
    """
    远程存储拒绝操作

    message 原样保留，供约束分类使用
    """

    def __init__(self, message: str, code: Optional[str] = None, original_error: Exception = None):
        super().__init__(message)
        self.code = code
        self.original_error = original_error

    def __str__(self) -> str:
        base = super().__str__()
        if self.code:
            return f"{base} [code: {self.code}]"
        return base


class RunTimeoutError(ProbeError):
    """
    验证运行超时

    在已跟踪记录清理完成后抛出，携带部分报告以便调用方输出

    Usage:
        try:
            report = executor.run(probes, timeout=30)
        except RunTimeoutError as e:
            print(e.report.cleanup.removed)
    """

    def __init__(self, message: str, timeout: float = 0.0, skipped: int = 0):
        super().__init__(message)
        self.timeout = timeout
        self.skipped = skipped
        self.report: Optional["VerificationReport"] = None

    def __repr__(self) -> str:
        return f"RunTimeoutError('{self}', timeout={self.timeout}, skipped={self.skipped})"
