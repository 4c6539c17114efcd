"""comet 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
命令本身只做参数解析和输出，业务逻辑全部在 comet.api。
"""

import os

import click

from comet import __version__, api
from comet.core.exceptions import CometError
from comet.utils.logger import setup_logging


def _prepare(ctx: click.Context) -> None:
    """初始化（幂等）并检查写权限，失败直接退出"""
    try:
        api.setup(ctx.obj.get("config"))
    except CometError as e:
        raise click.ClickException(f"初始化失败: {e}") from e
    if not api.check_permissions():
        click.echo("没有使用包管理器所需的权限，是否以 root 运行？", err=True)
        ctx.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", default=None, help="配置文件路径（默认取平台路径或 COMET_CONFIG）")
@click.pass_context
def main(ctx: click.Context, config: str | None) -> None:
    """comet - 简单的包管理器"""
    setup_logging(
        level=os.getenv("COMET_LOG_LEVEL", "WARNING"),
        json_output=os.getenv("COMET_LOG_JSON", "") == "1",
    )
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# 注册各领域子命令
from comet.cli.cmd_packages import register as _reg_packages  # noqa: E402
from comet.cli.cmd_misc import register as _reg_misc  # noqa: E402

_reg_packages(main)
_reg_misc(main)
