"""
Schema-Probe 基本使用示例

需要先在环境变量或 .env 中配置 SUPABASE_URL / SUPABASE_ANON_KEY
"""

# =============================================================================
# 示例 1: 执行内置探针集
# =============================================================================

def example_basic():
    """基本用法示例"""
    from schema_probe import SchemaVerifier

    verifier = SchemaVerifier()

    # 默认执行内置 inventory 探针集
    report = verifier.verify()

    print(verifier.render(report))
    print(f"状态: {report.status.value}")
    print(f"清理: {report.cleanup.removed}/{report.cleanup.tracked}")

    return report


# =============================================================================
# 示例 2: 自定义探针
# =============================================================================

def example_custom_probes():
    """用代码声明探针序列"""
    from schema_probe import SchemaVerifier, Probe, Operation, Expectation, ConstraintKind

    verifier = SchemaVerifier()

    probes = [
        # 创建的记录用 name 登记，后面的探针通过 ref 引用
        Probe(
            Operation.INSERT,
            "products",
            payload={"name": "Probe Product", "type": "Chemical", "barcode": "1234567890123"},
            name="product",
        ),
        Probe(
            Operation.UPDATE,
            "products",
            payload={"barcode": "9876543210987"},
            ref="product",
            expect_fields={"barcode": "9876543210987"},
        ),
        # 枚举不包含的值应被拒绝
        Probe(
            Operation.INSERT,
            "products",
            payload={"name": "Bad Type", "type": "NotAType"},
            expect=Expectation.FAILS,
            expect_kind=ConstraintKind.ENUM,
        ),
    ]

    report = verifier.verify(probes, timeout=60)
    print(verifier.render(report))


# =============================================================================
# 示例 3: 从 JSON 文件加载探针集
# =============================================================================

def example_probe_set_file():
    """从文件加载探针集"""
    from schema_probe import SchemaVerifier, ProbeSetError

    verifier = SchemaVerifier()

    try:
        report = verifier.verify("./probes/suppliers.json")
    except ProbeSetError as e:
        # 探针集中的所有问题会一次列出
        print(f"探针集非法: {e}")
        return None

    print(verifier.render(report, as_json=True))
    return report


# =============================================================================
# 示例 4: 只检查表是否存在
# =============================================================================

def example_check_tables():
    """表存在性检查（只读，不创建记录）"""
    from schema_probe import SchemaVerifier

    verifier = SchemaVerifier()
    report = verifier.check_tables(["suppliers", "products", "categories", "brands"])

    for result in report.failed_results:
        print(f"不可用: {result.probe.target} ({result.classified_kind})")


# =============================================================================
# 示例 5: 超时与中断处理
# =============================================================================

def example_timeout_handling():
    """超时后仍会清理，异常中携带部分报告"""
    from schema_probe import SchemaVerifier, RunTimeoutError

    verifier = SchemaVerifier()

    try:
        report = verifier.verify(timeout=5)
    except RunTimeoutError as e:
        print(f"超时: {e}")
        print(f"未执行探针: {e.skipped}")
        print(verifier.render(e.report))
        return None

    if report.aborted:
        # 网络中断
        print(f"运行中断: {report.abort_reason}")
    return report


# =============================================================================
# 示例 6: 显式配置和调试模式
# =============================================================================

def example_explicit_config():
    """不依赖环境变量"""
    from schema_probe import SchemaVerifier, ProbeConfig

    config = ProbeConfig(
        url="https://your-project.supabase.co",
        api_key="eyJ...",
        request_timeout=5,
    )
    verifier = SchemaVerifier(config=config, debug=True)

    report = verifier.verify()
    print(repr(report))


# =============================================================================
# 运行示例
# =============================================================================

if __name__ == "__main__":
    # 注意：以下示例会连接真实的 Supabase 项目
    # 这里仅展示调用方式

    print("=" * 60)
    print("Schema-Probe 使用示例")
    print("=" * 60)

    # 配置好连接参数后取消注释以运行
    # example_basic()
    # example_custom_probes()
    # example_probe_set_file()
    # example_check_tables()
    # example_timeout_handling()
    # example_explicit_config()

    print("\n请先配置 SUPABASE_URL / SUPABASE_ANON_KEY")
