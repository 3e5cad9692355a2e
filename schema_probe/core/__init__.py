"""
Schema-Probe 核心组件

包含远程存储客户端、探针执行器、约束解析器、报告构建器和探针集加载器
"""

from .client import RemoteStoreClient
from .executor import ProbeExecutor, CleanupTracker
from .interpreter import ConstraintInterpreter
from .report import ReportBuilder
from .loader import ProbeSetLoader, DEFAULT_PROBE_SET, table_probes

__all__ = [
    "RemoteStoreClient",
    "ProbeExecutor",
    "CleanupTracker",
    "ConstraintInterpreter",
    "ReportBuilder",
    "ProbeSetLoader",
    "DEFAULT_PROBE_SET",
    "table_probes",
]
