"""
远程存储客户端

把 Probe 翻译为一次 Supabase (PostgREST) 调用，并返回归一化的 RawOutcome
"""

import logging
from typing import Any, Dict, List, TYPE_CHECKING

import httpx
from postgrest.exceptions import APIError
from supabase import Client, ClientOptions, create_client

from ..models.exceptions import NetworkError, RemoteError
from ..models.probe import Operation, Probe
from ..models.result import RawOutcome

if TYPE_CHECKING:
    from ..config import ProbeConfig

logger = logging.getLogger(__name__)


class RemoteStoreClient:
    """
    远程存储客户端

    负责:
    1. 每次 execute 只发出一次网络请求，不重试
    2. insert 成功时捕获新记录的 id，供执行器清理
    3. 传输层失败抛出 NetworkError，远程拒绝转换为失败的 RawOutcome

    Usage:
        client = RemoteStoreClient.from_config(config)
        outcome = client.execute(Probe(Operation.SELECT, "suppliers"))
    """

    def __init__(self, client: Client):
        """
        Args:
            client: 已初始化的 supabase Client
        """
        self.client = client

    @classmethod
    def from_config(cls, config: "ProbeConfig") -> "RemoteStoreClient":
        """根据配置创建 supabase 客户端"""
        config.validate()
        options = ClientOptions(postgrest_client_timeout=config.request_timeout)
        client = create_client(config.url, config.api_key, options=options)
        logger.info(f"Supabase 客户端初始化完成: {config.url}")
        return cls(client)

    def execute(self, probe: Probe) -> RawOutcome:
        """
        执行单个探针

        Args:
            probe: 已绑定 record_id 的探针

        Returns:
            RawOutcome

        Raises:
            NetworkError: 连接失败或超时
        """
        try:
            return self._dispatch(probe)
        except RemoteError as e:
            logger.debug(f"远程拒绝 {probe.operation} {probe.target}: {e}")
            return RawOutcome.failure(str(e.args[0]), code=e.code)

    def delete(self, target: str, record_id: Any, id_column: str = "id") -> int:
        """
        按 id 删除记录（清理阶段使用）

        Returns:
            实际删除的行数

        Raises:
            NetworkError: 连接失败或超时
            RemoteError: 远程拒绝删除
        """
        query = self.client.table(target).delete().eq(id_column, record_id)
        return len(self._run(query, f"delete {target}"))

    def _dispatch(self, probe: Probe) -> RawOutcome:
        table = self.client.table(probe.target)
        operation = probe.operation

        if operation is Operation.INSERT:
            records = self._run(table.insert(dict(probe.payload)), f"insert {probe.target}")
            created_id = records[0].get(probe.id_column) if records else None
            return RawOutcome.ok(records, created_id=created_id)

        if operation is Operation.SELECT:
            query = table.select("*")
            if probe.record_id is not None:
                query = query.eq(probe.id_column, probe.record_id)
            for column, value in probe.filters.items():
                query = query.eq(column, value)
            records = self._run(query.limit(probe.limit), f"select {probe.target}")
            return RawOutcome.ok(records)

        if operation.needs_record:
            self._require_record(probe)

        if operation is Operation.UPDATE:
            query = table.update(dict(probe.payload)).eq(probe.id_column, probe.record_id)
            return RawOutcome.ok(self._run(query, f"update {probe.target}"))

        if operation is Operation.DELETE:
            query = table.delete().eq(probe.id_column, probe.record_id)
            return RawOutcome.ok(self._run(query, f"delete {probe.target}"))

        raise ValueError(f"unsupported operation: {operation!r}")

    def _require_record(self, probe: Probe) -> None:
        if probe.record_id is None:
            raise RemoteError(
                f"{probe.operation} on '{probe.target}' needs a record id (set 'ref' to an insert probe)"
            )

    def _run(self, query, action: str) -> List[Dict[str, Any]]:
        """执行查询，统一转换异常"""
        try:
            response = query.execute()
        except APIError as e:
            raise RemoteError(e.message or str(e), code=e.code, original_error=e) from e
        except httpx.TransportError as e:
            logger.error(f"网络错误 ({action}): {e}")
            raise NetworkError(f"{action} failed: {e}", original_error=e) from e
        return list(response.data or [])

    def __repr__(self) -> str:
        return f"RemoteStoreClient(client={type(self.client).__name__})"
