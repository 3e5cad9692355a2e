"""
Schema-Probe 验证器

组合远程存储客户端、探针执行器、约束解析器和报告构建器，提供一次完整的验证运行

配置优先级: 显式参数 > 环境变量 > .env 文件
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from .config import ProbeConfig
from .core.client import RemoteStoreClient
from .core.executor import ProbeExecutor
from .core.interpreter import ConstraintInterpreter
from .core.loader import ProbeSetLoader, table_probes
from .core.report import ReportBuilder
from .models.probe import Probe
from .models.result import VerificationReport

logger = logging.getLogger(__name__)


class SchemaVerifier:
    """
    Schema 契约验证器

    通过组合方式提供:
    1. 探针集加载
    2. 顺序执行探针并保证清理
    3. 约束分类
    4. 报告生成

    Usage:
        ```python
        from schema_probe import SchemaVerifier

        # 从环境变量读取 SUPABASE_URL / SUPABASE_ANON_KEY
        verifier = SchemaVerifier()

        # 执行内置探针集
        report = verifier.verify()
        print(verifier.render(report))

        # 只检查表是否存在
        report = verifier.check_tables(["suppliers", "products"])
        ```
    """

    def __init__(
        self,
        config: Optional[ProbeConfig] = None,
        client: Optional[RemoteStoreClient] = None,
        loader: Optional[ProbeSetLoader] = None,
        debug: bool = False,
    ):
        """
        Args:
            config: 验证配置（默认从环境变量读取）
            client: 已初始化的远程存储客户端（可选，测试时注入替身）
            loader: 探针集加载器
            debug: 是否开启调试模式
        """
        self.config = config or ProbeConfig(debug=debug)
        self.debug = debug or self.config.debug

        # 未注入客户端时按配置创建，配置错误会在这里抛出 ConfigurationError
        self.client = client if client is not None else RemoteStoreClient.from_config(self.config)
        self.loader = loader or ProbeSetLoader()
        self.interpreter = ConstraintInterpreter()
        self.builder = ReportBuilder()
        self.executor = ProbeExecutor(self.client, interpreter=self.interpreter, builder=self.builder)

        if self.debug:
            logging.basicConfig(level=logging.DEBUG)
            logger.setLevel(logging.DEBUG)
            logger.debug(f"[Schema-Probe] 初始化完成，config={self.config!r}")

    def load(self, source: Optional[Union[str, Path]] = None) -> List[Probe]:
        """加载探针集（默认内置 inventory）"""
        return self.loader.load(source)

    def verify(
        self,
        probes: Optional[Union[str, Path, Sequence[Probe]]] = None,
        timeout: Optional[float] = None,
    ) -> VerificationReport:
        """
        执行一次验证

        Args:
            probes: 探针列表、探针集名称或文件路径（None 使用默认探针集）
            timeout: 整体超时（秒），默认使用配置中的 timeout

        Returns:
            VerificationReport

        Raises:
            ProbeSetError: 探针集非法
            RunTimeoutError: 超时（已清理，携带部分报告）
        """
        if probes is None or isinstance(probes, (str, Path)):
            probes = self.load(probes)
        if timeout is None:
            timeout = self.config.timeout
        return self.executor.run(probes, timeout=timeout)

    def check_tables(self, tables: Iterable[str], timeout: Optional[float] = None) -> VerificationReport:
        """检查一组表是否存在且可读"""
        return self.verify(table_probes(tables), timeout=timeout)

    def render(self, report: VerificationReport, as_json: bool = False) -> str:
        """生成报告文本"""
        if as_json:
            return self.builder.render_json(report)
        return self.builder.render(report)

    def __repr__(self) -> str:
        return f"SchemaVerifier(url={self.config.url!r}, debug={self.debug})"
