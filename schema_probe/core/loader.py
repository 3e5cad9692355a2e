"""
探针集加载器

从 JSON 文件读取探针定义

文件格式:
    {
        "name": "inventory",
        "description": "...",
        "probes": [
            {
                "name": "supplier",
                "operation": "insert",
                "target": "suppliers",
                "payload": {"name": "Probe Supplier"},
                "expect": "succeeds"
            },
            {
                "operation": "insert",
                "target": "suppliers",
                "payload": {"phone": "1234567890"},
                "expect": "fails",
                "expect_kind": "NotNullViolation",
                "expect_column": "name"
            }
        ]
    }
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from ..models.exceptions import ProbeSetError
from ..models.kind import kind_or_none
from ..models.probe import Expectation, Operation, Probe

logger = logging.getLogger(__name__)


# 内置探针集目录
PROBESETS_DIR = Path(__file__).parent.parent / "probesets"

DEFAULT_PROBE_SET = "inventory"

KNOWN_KEYS = {
    "name", "operation", "target", "payload", "expect", "expect_kind", "expect_column",
    "expect_fields", "filters", "ref", "id_column", "limit", "description",
}


class ProbeSetLoader:
    """
    探针集加载器

    Usage:
        loader = ProbeSetLoader()
        probes = loader.load("inventory")           # 内置探针集
        probes = loader.load("./my_probes.json")    # 自定义文件
    """

    def __init__(self, probesets_dir: Optional[Path] = None):
        self.probesets_dir = probesets_dir or PROBESETS_DIR

    def available(self) -> List[str]:
        """列出内置探针集名称"""
        return sorted(p.stem for p in self.probesets_dir.glob("*.json"))

    def resolve(self, source: Optional[Union[str, Path]] = None) -> Path:
        """
        解析探针集路径

        不带路径分隔符和扩展名的名称视为内置探针集
        """
        if source is None:
            source = DEFAULT_PROBE_SET
        path = Path(source)
        if path.suffix == "" and len(path.parts) == 1:
            builtin = self.probesets_dir / f"{path.name}.json"
            if builtin.exists():
                return builtin
        return path

    def load(self, source: Optional[Union[str, Path]] = None) -> List[Probe]:
        """
        加载探针集

        Raises:
            ProbeSetError: 文件不存在、JSON 非法或探针定义非法
        """
        path = self.resolve(source)
        if not path.exists():
            raise ProbeSetError(f"probe set not found: {path}", source=str(path))

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ProbeSetError(f"probe set is not valid JSON: {path}: {e}", source=str(path)) from e

        probes = self.parse(data, source=str(path))
        logger.debug(f"从 {path} 加载 {len(probes)} 个探针")
        return probes

    def parse(self, data: Any, source: str = "<memory>") -> List[Probe]:
        """把 JSON 数据转换为 Probe 列表"""
        if isinstance(data, dict):
            entries = data.get("probes")
        else:
            entries = data
        if not isinstance(entries, list) or not entries:
            raise ProbeSetError(f"probe set has no probes: {source}", source=source)

        probes = []
        problems = []
        names = set()
        for index, entry in enumerate(entries, 1):
            try:
                probe = self.parse_probe(entry)
            except (TypeError, ValueError) as e:
                problems.append(f"probe {index}: {e}")
                continue
            if probe.ref and probe.ref not in names:
                problems.append(f"probe {index}: ref '{probe.ref}' does not name an earlier insert probe")
            if probe.name:
                if probe.name in names:
                    problems.append(f"probe {index}: duplicate name '{probe.name}'")
                if probe.operation is Operation.INSERT:
                    names.add(probe.name)
            probes.append(probe)

        if problems:
            raise ProbeSetError(f"invalid probe set: {source}", source=source, problems=problems)
        return probes

    def parse_probe(self, entry: Dict[str, Any]) -> Probe:
        """
        解析单个探针定义

        Raises:
            ValueError: 字段缺失或取值非法
        """
        if not isinstance(entry, dict):
            raise ValueError("probe must be an object")
        unknown = set(entry) - KNOWN_KEYS
        if unknown:
            raise ValueError(f"unknown keys {sorted(unknown)}")
        for key in ("operation", "target"):
            if not entry.get(key):
                raise ValueError(f"'{key}' is required")

        operation = Operation(str(entry["operation"]).lower())
        expect = Expectation.parse(entry.get("expect", "succeeds"))
        expect_kind = kind_or_none(entry.get("expect_kind"))
        if expect_kind is not None and expect is not Expectation.FAILS:
            raise ValueError("'expect_kind' requires expect 'fails'")

        limit = int(entry.get("limit", 1))
        if limit < 1:
            raise ValueError("'limit' must be >= 1")

        return Probe(
            operation=operation,
            target=str(entry["target"]),
            payload=dict(entry.get("payload") or {}),
            expect=expect,
            expect_kind=expect_kind,
            expect_column=entry.get("expect_column"),
            expect_fields=dict(entry.get("expect_fields") or {}),
            filters=dict(entry.get("filters") or {}),
            name=entry.get("name"),
            ref=entry.get("ref"),
            id_column=entry.get("id_column", "id"),
            limit=limit,
            description=entry.get("description", ""),
        )


def table_probes(tables: Iterable[str]) -> List[Probe]:
    """
    生成表存在性探针

    每张表一个 select limit 1，表不存在时归类为 SchemaMismatch
    """
    return [
        Probe(
            operation=Operation.SELECT,
            target=table,
            description=f"table '{table}' is readable",
        )
        for table in tables
    ]
