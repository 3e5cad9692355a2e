"""
RemoteStoreClient 远程存储客户端测试
"""

import httpx
import pytest
from unittest.mock import MagicMock, Mock, patch
from postgrest.exceptions import APIError

from schema_probe.config import ProbeConfig
from schema_probe.core.client import RemoteStoreClient
from schema_probe.models.exceptions import ConfigurationError, NetworkError, RemoteError
from schema_probe.models.probe import Operation, Probe

from conftest import VALID_KEY, VALID_URL


def api_error(message, code):
    return APIError({"message": message, "code": code, "details": None, "hint": None})


class TestRemoteStoreClient:
    """RemoteStoreClient 测试"""

    @pytest.fixture
    def query(self):
        """所有构建方法都返回自身的查询替身"""
        query = MagicMock()
        for method in ("select", "insert", "update", "delete", "eq", "limit"):
            getattr(query, method).return_value = query
        query.execute.return_value = Mock(data=[])
        return query

    @pytest.fixture
    def supabase(self, query):
        supabase = Mock()
        supabase.table.return_value = query
        return supabase

    @pytest.fixture
    def client(self, supabase):
        return RemoteStoreClient(supabase)

    def test_insert_captures_created_id(self, client, supabase, query):
        """测试 insert 成功时捕获新记录 id"""
        query.execute.return_value = Mock(data=[{"id": "uuid-1", "name": "Probe Supplier"}])
        probe = Probe(Operation.INSERT, "suppliers", payload={"name": "Probe Supplier"})

        outcome = client.execute(probe)

        supabase.table.assert_called_once_with("suppliers")
        query.insert.assert_called_once_with({"name": "Probe Supplier"})
        assert outcome.success == True
        assert outcome.created_id == "uuid-1"
        assert outcome.record["name"] == "Probe Supplier"

    def test_insert_custom_id_column(self, client, query):
        """测试自定义主键列"""
        query.execute.return_value = Mock(data=[{"sku": "A-1"}])
        probe = Probe(Operation.INSERT, "products", payload={"sku": "A-1"}, id_column="sku")

        assert client.execute(probe).created_id == "A-1"

    def test_remote_rejection_becomes_failed_outcome(self, client, query):
        """测试远程拒绝转换为失败结果，错误信息原样保留"""
        message = 'null value in column "name" of relation "suppliers" violates not-null constraint'
        query.execute.side_effect = api_error(message, "23502")

        outcome = client.execute(Probe(Operation.INSERT, "suppliers", payload={}))

        assert outcome.success == False
        assert outcome.message == message
        assert outcome.code == "23502"
        assert outcome.created_id is None

    def test_select_applies_record_and_filters(self, client, query):
        """测试 select 带 id 和过滤条件"""
        query.execute.return_value = Mock(data=[{"id": 5, "is_active": True}])
        probe = Probe(Operation.SELECT, "suppliers", filters={"is_active": True}, record_id=5, limit=3)

        outcome = client.execute(probe)

        query.select.assert_called_once_with("*")
        query.eq.assert_any_call("id", 5)
        query.eq.assert_any_call("is_active", True)
        query.limit.assert_called_once_with(3)
        assert outcome.records == ({"id": 5, "is_active": True},)

    def test_update_requires_record(self, client, query):
        """测试 update 未绑定记录时直接失败，不发请求"""
        outcome = client.execute(Probe(Operation.UPDATE, "products", payload={"barcode": "1"}))

        assert outcome.success == False
        assert "record id" in outcome.message
        query.execute.assert_not_called()

    def test_update_by_id(self, client, query):
        """测试按 id 更新"""
        query.execute.return_value = Mock(data=[{"id": 9, "barcode": "9876543210987"}])
        probe = Probe(Operation.UPDATE, "products", payload={"barcode": "9876543210987"}, record_id=9)

        outcome = client.execute(probe)

        query.update.assert_called_once_with({"barcode": "9876543210987"})
        query.eq.assert_called_once_with("id", 9)
        assert outcome.record["barcode"] == "9876543210987"

    def test_network_error_propagates(self, client, query):
        """测试传输层错误抛出 NetworkError"""
        query.execute.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(NetworkError) as exc_info:
            client.execute(Probe(Operation.SELECT, "suppliers"))

        assert isinstance(exc_info.value.original_error, httpx.ConnectError)

    def test_timeout_is_network_error(self, client, query):
        query.execute.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(NetworkError):
            client.execute(Probe(Operation.SELECT, "suppliers"))

    def test_delete_returns_count(self, client, query):
        """测试清理删除"""
        query.execute.return_value = Mock(data=[{"id": 3}])

        assert client.delete("suppliers", 3) == 1
        query.delete.assert_called_once_with()
        query.eq.assert_called_once_with("id", 3)

    def test_delete_rejection_raises(self, client, query):
        """测试清理被拒绝时抛出 RemoteError"""
        query.execute.side_effect = api_error("permission denied for table suppliers", "42501")

        with pytest.raises(RemoteError) as exc_info:
            client.delete("suppliers", 3)

        assert exc_info.value.code == "42501"

    def test_from_config_validates_first(self, clean_env):
        """测试配置非法时不创建客户端"""
        with patch("schema_probe.core.client.create_client") as create:
            with pytest.raises(ConfigurationError):
                RemoteStoreClient.from_config(ProbeConfig())

        create.assert_not_called()

    def test_from_config_creates_client(self, clean_env):
        """测试按配置创建 supabase 客户端"""
        config = ProbeConfig(url=VALID_URL, api_key=VALID_KEY, request_timeout=4)

        with patch("schema_probe.core.client.create_client") as create:
            client = RemoteStoreClient.from_config(config)

        args, kwargs = create.call_args
        assert args == (VALID_URL, VALID_KEY)
        assert kwargs["options"].postgrest_client_timeout == 4
        assert client.client is create.return_value
