"""
测试公共夹具

FakeStore 是一个内存版远程存储，实现 RemoteStoreClient 的 execute/delete 接口
"""

import pytest

from schema_probe.models.exceptions import RemoteError
from schema_probe.models.probe import Operation
from schema_probe.models.result import RawOutcome


VALID_URL = "https://abcdefghijklmnop.supabase.co"
VALID_KEY = "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9." + "a" * 120

ENV_KEYS = (
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_KEY",
    "REACT_APP_SUPABASE_URL",
    "REACT_APP_SUPABASE_ANON_KEY",
    "SCHEMA_PROBE_HOST_SUFFIX",
    "SCHEMA_PROBE_TIMEOUT",
    "SCHEMA_PROBE_REQUEST_TIMEOUT",
    "SCHEMA_PROBE_LOG_LEVEL",
)


class FakeStore:
    """
    内存远程存储

    Args:
        required: 每张表的必填列，缺失时返回 not-null 违规
        script: 第 N 次 execute（从 1 开始）的固定返回值或异常
        fail_deletes: 清理时删除失败的记录 id
        blocked_deletes: 清理时删除影响 0 行的记录 id（模拟 RLS 静默拦截）
    """

    def __init__(self, required=None, script=None, fail_deletes=(), blocked_deletes=()):
        self.required = required or {}
        self.script = dict(script or {})
        self.fail_deletes = set(fail_deletes)
        self.blocked_deletes = set(blocked_deletes)
        self.tables = {}
        self.executed = []
        self.deleted = []
        self._next_id = 1

    def execute(self, probe):
        self.executed.append(probe)
        scripted = self.script.get(len(self.executed))
        if isinstance(scripted, Exception):
            raise scripted
        if scripted is not None:
            if scripted.created_id is not None:
                self.tables.setdefault(probe.target, {})[scripted.created_id] = dict(scripted.record or {})
            return scripted

        rows = self.tables.setdefault(probe.target, {})

        if probe.operation is Operation.INSERT:
            for column in self.required.get(probe.target, ()):
                if probe.payload.get(column) is None:
                    return RawOutcome.failure(
                        f'null value in column "{column}" of relation "{probe.target}" '
                        f"violates not-null constraint",
                        code="23502",
                    )
            record = dict(probe.payload, id=self._next_id)
            self._next_id += 1
            rows[record["id"]] = record
            return RawOutcome.ok([record], created_id=record["id"])

        if probe.operation is Operation.SELECT:
            records = list(rows.values())
            if probe.record_id is not None:
                records = [r for r in records if r["id"] == probe.record_id]
            for column, value in probe.filters.items():
                records = [r for r in records if r.get(column) == value]
            return RawOutcome.ok(records[: probe.limit])

        if probe.operation is Operation.UPDATE:
            record = rows.get(probe.record_id)
            if record is None:
                return RawOutcome.ok([])
            record.update(probe.payload)
            return RawOutcome.ok([dict(record)])

        removed = rows.pop(probe.record_id, None)
        return RawOutcome.ok([removed] if removed else [])

    def delete(self, target, record_id, id_column="id"):
        self.deleted.append((target, record_id))
        if record_id in self.fail_deletes:
            raise RemoteError("permission denied for table " + target, code="42501")
        if record_id in self.blocked_deletes:
            return 0
        removed = self.tables.get(target, {}).pop(record_id, None)
        return 1 if removed else 0

    @property
    def residual(self):
        """运行结束后残留的记录数"""
        return sum(len(rows) for rows in self.tables.values())


@pytest.fixture
def fake_store():
    return FakeStore(required={"suppliers": ["name"]})


@pytest.fixture
def clean_env(monkeypatch):
    """清空所有相关环境变量"""
    for key in ENV_KEYS:
        # 先 setenv 让 monkeypatch 记录原值，测试结束后 load_dotenv 写入的值也会被还原
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch


@pytest.fixture
def valid_env(clean_env):
    clean_env.setenv("SUPABASE_URL", VALID_URL)
    clean_env.setenv("SUPABASE_ANON_KEY", VALID_KEY)
    return clean_env
