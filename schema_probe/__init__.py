"""
Schema-Probe: 远程 Schema 契约验证工具

对远程表格存储（Supabase / PostgREST）执行声明式探针，验证字段、类型和约束是否符合预期，
输出差异报告，并保证运行结束后删除所有测试记录

连接配置（环境变量或 .env 文件）:
    | 环境变量            | 兼容旧变量                     |
    |--------------------|-------------------------------|
    | SUPABASE_URL       | REACT_APP_SUPABASE_URL        |
    | SUPABASE_ANON_KEY  | REACT_APP_SUPABASE_ANON_KEY   |

Usage:
    from schema_probe import SchemaVerifier, Probe, Operation, Expectation, ConstraintKind

    verifier = SchemaVerifier()

    report = verifier.verify([
        Probe(Operation.INSERT, "suppliers", payload={"name": "Probe Supplier"}),
        Probe(
            Operation.INSERT,
            "suppliers",
            payload={"phone": "1234567890"},
            expect=Expectation.FAILS,
            expect_kind=ConstraintKind.NOT_NULL,
            expect_column="name",
        ),
    ])
    print(verifier.render(report))
"""

from .models.kind import ConstraintKind
from .models.probe import Expectation, Operation, Probe
from .models.result import (
    CleanupSummary,
    Classification,
    ProbeResult,
    RawOutcome,
    ReportStatus,
    VerificationReport,
)
from .models.exceptions import (
    ConfigurationError,
    NetworkError,
    ProbeError,
    ProbeSetError,
    RemoteError,
    RunTimeoutError,
)
from .config import ProbeConfig
from .core.client import RemoteStoreClient
from .core.executor import ProbeExecutor
from .core.interpreter import ConstraintInterpreter
from .core.report import ReportBuilder
from .core.loader import ProbeSetLoader, table_probes
from .verifier import SchemaVerifier

__version__ = "0.1.0"

__all__ = [
    # 主类
    "SchemaVerifier",
    "ProbeConfig",

    # 数据模型
    "Probe",
    "Operation",
    "Expectation",
    "ConstraintKind",
    "Classification",
    "RawOutcome",
    "ProbeResult",
    "CleanupSummary",
    "ReportStatus",
    "VerificationReport",

    # 异常
    "ProbeError",
    "ConfigurationError",
    "ProbeSetError",
    "NetworkError",
    "RemoteError",
    "RunTimeoutError",

    # 核心组件
    "RemoteStoreClient",
    "ProbeExecutor",
    "ConstraintInterpreter",
    "ReportBuilder",
    "ProbeSetLoader",
    "table_probes",
]
