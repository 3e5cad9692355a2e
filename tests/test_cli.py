"""
命令行入口测试
"""

import json

import pytest
from click.testing import CliRunner
from unittest.mock import patch

from schema_probe.cli import main
from schema_probe.core.report import ReportBuilder
from schema_probe.models.exceptions import NetworkError, RunTimeoutError

from conftest import FakeStore, VALID_KEY, VALID_URL


class TestCli:
    """schema-probe 命令测试"""

    @pytest.fixture
    def runner(self):
        return CliRunner()

    @pytest.fixture
    def store(self):
        return FakeStore(required={"suppliers": ["name"]})

    @pytest.fixture
    def patched_store(self, store):
        with patch("schema_probe.verifier.RemoteStoreClient.from_config", return_value=store) as from_config:
            yield from_config

    def invoke(self, runner, args=()):
        with runner.isolated_filesystem():
            return runner.invoke(main, list(args))

    def test_default_run_passes(self, runner, valid_env, patched_store, store):
        """测试默认探针集全部通过时退出码为 0"""
        result = self.invoke(runner)

        assert result.exit_code == 0, result.output
        assert "Status: AllPassed" in result.output
        assert "3 test records removed" in result.output
        assert store.residual == 0

    def test_missing_configuration(self, runner, clean_env, patched_store):
        """测试缺少连接参数时退出码为 1 且不创建客户端"""
        result = self.invoke(runner)

        assert result.exit_code == 1
        assert "Configuration error" in result.output
        assert "SUPABASE_URL" in result.output
        patched_store.assert_not_called()

    def test_env_file_option(self, runner, clean_env, patched_store, tmp_path):
        """测试 --env-file 加载连接参数"""
        env_file = tmp_path / "probe.env"
        env_file.write_text(f"SUPABASE_URL={VALID_URL}\nSUPABASE_ANON_KEY={VALID_KEY}\n", encoding="utf-8")

        result = self.invoke(runner, ["--env-file", str(env_file)])

        assert result.exit_code == 0, result.output

    def test_table_option(self, runner, valid_env, patched_store, store):
        """测试 --table 只检查表"""
        result = self.invoke(runner, ["--table", "suppliers", "--table", "brands"])

        assert result.exit_code == 0, result.output
        assert [p.target for p in store.executed] == ["suppliers", "brands"]

    def test_json_output(self, runner, valid_env, patched_store):
        """测试 --json 输出"""
        result = self.invoke(runner, ["--json", "--table", "brands"])

        data = json.loads(result.output)
        assert data["status"] == "AllPassed"
        assert data["results"][0]["succeeded"] == True

    def test_unknown_probe_set(self, runner, valid_env, patched_store):
        """测试探针集不存在"""
        result = self.invoke(runner, ["./missing.json"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_failed_expectation_exits_1(self, runner, valid_env, patched_store, store):
        """测试有探针未满足期望时退出码为 1"""
        store.required = {}

        result = self.invoke(runner)

        assert result.exit_code == 1
        assert "Status: SomeFailed" in result.output
        assert "expected NotNullViolation" in result.output

    def test_network_failure_exits_1(self, runner, valid_env, patched_store, store):
        """测试网络中断时仍然清理并返回 1"""
        store.script = {2: NetworkError("connection refused")}

        result = self.invoke(runner)

        assert result.exit_code == 1
        assert "Run aborted" in result.output
        assert "1 test records removed" in result.output
        assert store.residual == 0

    def test_unexpected_error_prints_report(self, runner, valid_env, patched_store, store):
        """测试客户端未预期的异常仍输出报告并返回 1"""
        store.script = {2: RuntimeError("boom")}

        result = self.invoke(runner)

        assert result.exit_code == 1
        assert "Run aborted: unexpected error: boom" in result.output
        assert "1 test records removed" in result.output

    def test_blocked_cleanup_is_reported(self, runner, valid_env, patched_store, store):
        """测试删除影响 0 行时报告无法清理的记录"""
        store.blocked_deletes = {1}

        result = self.invoke(runner)
        assert "2 test records removed (1 of 3 could NOT be removed)" in result.output
        assert "delete affected 0 rows" in result.output

    def test_timeout(self, runner, valid_env, patched_store):
        """测试超时退出码为 1 并输出部分报告"""
        error = RunTimeoutError("verification run exceeded 15.0s before probe 1 of 9", timeout=15.0, skipped=9)
        error.report = ReportBuilder().summarize([], abort_reason=str(error), skipped=9)

        with patch("schema_probe.verifier.SchemaVerifier.verify", side_effect=error):
            result = self.invoke(runner, ["--timeout", "15"])

        assert result.exit_code == 1
        assert "(9 probe(s) not executed)" in result.output
        assert "exceeded 15.0s" in result.output
