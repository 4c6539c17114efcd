"""CLI：初始化、缓存与查询命令"""

from __future__ import annotations

import click

from comet import api
from comet.cli import _prepare
from comet.core.exceptions import CometError


def register(group: click.Group) -> None:
    group.add_command(init)
    group.add_command(update_cache)
    group.add_command(list_installed)
    group.add_command(list_available)
    group.add_command(info)


def _echo_versions(versions: dict[str, str]) -> None:
    if not versions:
        click.echo("没有包。")
        return
    for name, version in sorted(versions.items()):
        click.echo(f"{name}: {version}")


@click.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """初始化配置、存储目录、账本和缓存"""
    try:
        cfg = api.setup(ctx.obj.get("config"))
    except CometError as e:
        raise click.ClickException(f"初始化失败: {e}") from e
    click.echo(f"初始化完成: storage={cfg.storage_dir} tmp={cfg.tmp_dir}")


@click.command(name="update-cache")
@click.pass_context
def update_cache(ctx: click.Context) -> None:
    """从所有仓库源重建可用包缓存"""
    _prepare(ctx)
    try:
        cache = api.refresh_cache()
    except CometError as e:
        raise click.ClickException(f"更新缓存失败: {e}") from e
    click.echo(f"缓存已更新: {len(cache)} 个可用包")


@click.command(name="list")
@click.pass_context
def list_installed(ctx: click.Context) -> None:
    """列出已安装的包"""
    _prepare(ctx)
    _echo_versions(api.list_installed())


@click.command(name="list-available")
@click.pass_context
def list_available(ctx: click.Context) -> None:
    """列出缓存中的可用包"""
    _prepare(ctx)
    _echo_versions(api.list_available())


@click.command()
@click.argument("package")
@click.pass_context
def info(ctx: click.Context, package: str) -> None:
    """显示缓存中包的详情"""
    _prepare(ctx)
    details = api.describe(package)
    if details is None:
        raise click.ClickException(f"缓存中没有包 {package}")
    click.echo(details)
