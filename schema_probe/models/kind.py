"""
约束类型枚举

定义远程存储拒绝写入时的约束分类，以及每类对应的修复建议
"""

from enum import Enum
from typing import Optional


class ConstraintKind(str, Enum):
    """
    约束类型枚举

    值即报告中显示的名称:
        - NotNullViolation: 必填字段缺失
        - EnumViolation: 值不在枚举类型中
        - CheckViolation: CHECK / 其他约束拒绝
        - PermissionDenied(RLS): 行级安全策略拒绝
        - SchemaMismatch: 表或列不存在
        - Unknown: 未匹配任何规则
    """
    NOT_NULL = "NotNullViolation"
    ENUM = "EnumViolation"
    CHECK = "CheckViolation"
    PERMISSION_DENIED = "PermissionDenied(RLS)"
    SCHEMA_MISMATCH = "SchemaMismatch"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> "ConstraintKind":
        """
        从探针定义中的字符串解析约束类型

        支持枚举值、枚举名和常见简写（不区分大小写）:
            - 'NotNullViolation', 'not_null', 'not-null' -> NOT_NULL
            - 'EnumViolation', 'enum' -> ENUM
            - 'CheckViolation', 'check' -> CHECK
            - 'PermissionDenied(RLS)', 'rls', 'permission' -> PERMISSION_DENIED
            - 'SchemaMismatch', 'missing' -> SCHEMA_MISMATCH

        Raises:
            ValueError: 无法识别的类型
        """
        key = text.strip().lower().replace("-", "_")
        for kind in cls:
            if key in (kind.value.lower(), kind.name.lower()):
                return kind
        kind = KIND_ALIASES.get(key)
        if kind is None:
            raise ValueError(f"unknown constraint kind: {text!r}")
        return kind

    @property
    def remediation(self) -> str:
        """获取该类型的修复建议"""
        return REMEDIATION_HINTS[self]

    @property
    def is_constraint(self) -> bool:
        """是否为 schema 约束导致的拒绝"""
        return self in (ConstraintKind.NOT_NULL, ConstraintKind.ENUM, ConstraintKind.CHECK)


# 简写映射
KIND_ALIASES = {
    "not_null": ConstraintKind.NOT_NULL,
    "notnull": ConstraintKind.NOT_NULL,
    "required": ConstraintKind.NOT_NULL,
    "enum": ConstraintKind.ENUM,
    "check": ConstraintKind.CHECK,
    "constraint": ConstraintKind.CHECK,
    "rls": ConstraintKind.PERMISSION_DENIED,
    "permission": ConstraintKind.PERMISSION_DENIED,
    "permission_denied": ConstraintKind.PERMISSION_DENIED,
    "missing": ConstraintKind.SCHEMA_MISMATCH,
    "schema": ConstraintKind.SCHEMA_MISMATCH,
}


# 修复建议表（报告中按出现的类型输出）
REMEDIATION_HINTS = {
    ConstraintKind.NOT_NULL: "supply the column in the payload or add a default / drop NOT NULL",
    ConstraintKind.ENUM: "add value to enum type before re-running",
    ConstraintKind.CHECK: "relax or fix the CHECK constraint, or send a value it accepts",
    ConstraintKind.PERMISSION_DENIED: "apply the row-level security policy for this role, then re-run",
    ConstraintKind.SCHEMA_MISMATCH: "run the pending migration that creates the table/column",
    ConstraintKind.UNKNOWN: "inspect the raw error and extend the classification rules",
}


def kind_or_none(text: Optional[str]) -> Optional[ConstraintKind]:
    """解析可选的约束类型，空值返回 None"""
    if not text:
        return None
    return ConstraintKind.parse(text)
