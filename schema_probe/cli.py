"""
Schema-Probe 命令行入口

Usage:
    # 执行内置 inventory 探针集
    schema-probe

    # 执行自定义探针集
    schema-probe ./probes/suppliers.json --timeout 60

    # 只检查表是否存在
    schema-probe --table suppliers --table products

退出码: 全部满足期望为 0，否则为 1（包括配置错误、中断和超时）
"""

import sys
from pathlib import Path

import click

from .config import ProbeConfig
from .models.exceptions import ConfigurationError, RunTimeoutError
from .verifier import SchemaVerifier


@click.command()
@click.argument("probe_set", required=False)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Overall run timeout in seconds",
)
@click.option(
    "--table",
    "tables",
    multiple=True,
    help="Only check that TABLE exists and is readable (repeatable)",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print the report as JSON",
)
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Load connection settings from this .env file",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug logging",
)
def main(probe_set, timeout, tables, as_json, env_file, debug):
    """Verify that the remote schema honours PROBE_SET (default: inventory)."""
    try:
        config = ProbeConfig.from_env(env_file, debug=debug, timeout=timeout)
        config.configure_logging()
        config.validate()
        verifier = SchemaVerifier(config=config, debug=debug)
        if tables:
            report = verifier.check_tables(tables)
        else:
            report = verifier.verify(probe_set)
    except ConfigurationError as e:
        click.echo(f"❌ Configuration error: {e}", err=True)
        sys.exit(1)
    except RunTimeoutError as e:
        if e.report is not None:
            click.echo(verifier.render(e.report, as_json=as_json))
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    click.echo(verifier.render(report, as_json=as_json))
    sys.exit(report.exit_code)


if __name__ == "__main__":
    main()
