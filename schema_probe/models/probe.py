"""
探针定义

定义 Probe 及其操作类型、期望结果
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional

from .kind import ConstraintKind


class Operation(str, Enum):
    """探针操作类型"""
    INSERT = "insert"
    SELECT = "select"
    UPDATE = "update"
    DELETE = "delete"

    def __str__(self) -> str:
        return self.value

    @property
    def needs_record(self) -> bool:
        """update/delete 必须定位到具体记录"""
        return self in (Operation.UPDATE, Operation.DELETE)


class Expectation(str, Enum):
    """探针期望结果"""
    SUCCEEDS = "succeeds"
    FAILS = "fails"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> "Expectation":
        """
        解析期望结果

        'fails-with-kind' 视为 'fails'，具体类型由 expect_kind 指定
        """
        key = text.strip().lower().replace("_", "-")
        if key in ("succeeds", "success", "ok", "pass"):
            return cls.SUCCEEDS
        if key in ("fails", "fails-with-kind", "failure", "fail"):
            return cls.FAILS
        raise ValueError(f"unknown expectation: {text!r}")


@dataclass(frozen=True)
class Probe:
    """
    单个声明式探针

    Attributes:
        operation: 操作类型
        target: 表名
        payload: 写入的字段（insert/update）
        expect: 期望结果
        expect_kind: 期望失败时的约束类型（可选）
        expect_column: 期望 NOT NULL 违规指向的列（可选）
        expect_fields: 返回记录必须包含的字段值（可选）
        filters: select 的等值过滤条件
        name: 探针标识，供后续探针通过 ref 引用
        ref: 引用前面某个 insert 探针创建的记录
        record_id: 绑定后的记录 id（由执行器填入）
        id_column: 主键列名
        limit: select 返回行数上限
        description: 报告中显示的描述
    """

    operation: Operation
    target: str
    payload: Dict[str, Any] = field(default_factory=dict)
    expect: Expectation = Expectation.SUCCEEDS
    expect_kind: Optional[ConstraintKind] = None
    expect_column: Optional[str] = None
    expect_fields: Dict[str, Any] = field(default_factory=dict)
    filters: Dict[str, Any] = field(default_factory=dict)
    name: Optional[str] = None
    ref: Optional[str] = None
    record_id: Any = None
    id_column: str = "id"
    limit: int = 1
    description: str = ""

    @property
    def label(self) -> str:
        """报告中使用的名称"""
        if self.description:
            return self.description
        if self.name:
            return self.name
        return f"{self.operation} {self.target}"

    @property
    def expects_failure(self) -> bool:
        return self.expect is Expectation.FAILS

    def bind(self, record_id: Any) -> "Probe":
        """返回绑定了记录 id 的新探针"""
        return replace(self, record_id=record_id)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        data = {
            "operation": self.operation.value,
            "target": self.target,
            "expect": self.expect.value,
        }
        if self.name:
            data["name"] = self.name
        if self.payload:
            data["payload"] = dict(self.payload)
        if self.expect_kind is not None:
            data["expect_kind"] = self.expect_kind.value
        if self.expect_column:
            data["expect_column"] = self.expect_column
        if self.ref:
            data["ref"] = self.ref
        if self.record_id is not None:
            data["record_id"] = self.record_id
        return data

    def __repr__(self) -> str:
        return f"Probe({self.operation.value} {self.target}, expect={self.expect.value})"
