"""
约束解析器

负责把远程存储返回的错误文本归类为 ConstraintKind

注意: 分类依赖 Supabase/PostgREST 的错误文本，属于尽力而为的字符串匹配。
远程服务的错误格式一旦变化，需要同步修改 MESSAGE_RULES。
"""

import logging
import re
from typing import Optional, Tuple

from ..models.kind import ConstraintKind
from ..models.result import Classification

logger = logging.getLogger(__name__)


class ConstraintInterpreter:
    """
    约束解析器

    分类规则（不区分大小写，先匹配先生效）:
    1. "violates not-null constraint" -> NotNullViolation，并提取 column "xxx"
    2. "invalid input value for enum" -> EnumViolation
    3. "row-level security" -> PermissionDenied(RLS)
    4. "constraint" / "check" -> CheckViolation
    5. "does not exist" / "schema cache" -> SchemaMismatch
    6. 文本未命中时按错误码兜底
    7. 其他 -> Unknown
    """

    MESSAGE_RULES: Tuple[Tuple[Tuple[str, ...], ConstraintKind], ...] = (
        (("violates not-null constraint",), ConstraintKind.NOT_NULL),
        (("invalid input value for enum",), ConstraintKind.ENUM),
        (("row-level security",), ConstraintKind.PERMISSION_DENIED),
        (("constraint", "check"), ConstraintKind.CHECK),
        (("does not exist", "schema cache"), ConstraintKind.SCHEMA_MISMATCH),
    )

    # Postgres SQLSTATE / PostgREST 错误码
    CODE_RULES = {
        "23502": ConstraintKind.NOT_NULL,
        "22P02": ConstraintKind.ENUM,
        "42501": ConstraintKind.PERMISSION_DENIED,
        "23514": ConstraintKind.CHECK,
        "23505": ConstraintKind.CHECK,
        "23503": ConstraintKind.CHECK,
        "42P01": ConstraintKind.SCHEMA_MISMATCH,
        "42703": ConstraintKind.SCHEMA_MISMATCH,
        "PGRST204": ConstraintKind.SCHEMA_MISMATCH,
        "PGRST205": ConstraintKind.SCHEMA_MISMATCH,
    }

    COLUMN_PATTERN = re.compile(r'column "([^"]+)"', re.IGNORECASE)
    ENUM_PATTERN = re.compile(r"invalid input value for enum ([\w.]+)", re.IGNORECASE)
    SCHEMA_COLUMN_PATTERN = re.compile(r"the '([^']+)' column", re.IGNORECASE)

    def classify(self, message: Optional[str], code: Optional[str] = None) -> Classification:
        """
        分类单条错误信息

        Args:
            message: 远程错误原文
            code: 错误码（可选）

        Returns:
            Classification 对象
        """
        text = (message or "").lower()

        kind = self._match_message(text)
        if kind is ConstraintKind.UNKNOWN and code:
            kind = self.CODE_RULES.get(str(code).upper(), ConstraintKind.UNKNOWN)

        if kind is ConstraintKind.UNKNOWN:
            logger.debug(f"未识别的错误信息: {message!r} (code={code})")

        return Classification(
            kind=kind,
            column=self._extract_column(kind, message or ""),
            detail=self._extract_detail(kind, message or ""),
        )

    def _match_message(self, text: str) -> ConstraintKind:
        for needles, kind in self.MESSAGE_RULES:
            if any(needle in text for needle in needles):
                return kind
        return ConstraintKind.UNKNOWN

    def _extract_column(self, kind: ConstraintKind, message: str) -> Optional[str]:
        """提取违规列名"""
        if kind is ConstraintKind.NOT_NULL:
            match = self.COLUMN_PATTERN.search(message)
            return match.group(1) if match else None
        if kind is ConstraintKind.SCHEMA_MISMATCH:
            match = self.COLUMN_PATTERN.search(message) or self.SCHEMA_COLUMN_PATTERN.search(message)
            return match.group(1) if match else None
        return None

    def _extract_detail(self, kind: ConstraintKind, message: str) -> Optional[str]:
        """提取附加信息（枚举类型名）"""
        if kind is ConstraintKind.ENUM:
            match = self.ENUM_PATTERN.search(message)
            return match.group(1).rstrip(":") if match else None
        return None

    def matches(
        self,
        classification: Classification,
        expect_kind: Optional[ConstraintKind] = None,
        expect_column: Optional[str] = None,
    ) -> bool:
        """
        判断分类结果是否符合期望

        Args:
            classification: 分类结果
            expect_kind: 期望的约束类型（None 表示任意失败均可）
            expect_column: 期望的列名（None 表示不校验）
        """
        if expect_kind is not None and classification.kind is not expect_kind:
            return False
        if expect_column is not None and classification.column != expect_column:
            return False
        return True
