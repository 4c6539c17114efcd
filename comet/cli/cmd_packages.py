"""CLI：包生命周期命令（install / remove / update）"""

from __future__ import annotations

import click

from comet import api
from comet.cli import _prepare
from comet.core.exceptions import CometError


def register(group: click.Group) -> None:
    group.add_command(install)
    group.add_command(remove)
    group.add_command(update)
    group.add_command(update_all)


@click.command()
@click.argument("packages", nargs=-1, required=True)
@click.option("--local", "-l", is_flag=True, help="参数为本地 .star 归档路径")
@click.option("--force", "-f", is_flag=True, help="已安装时强制重新安装")
@click.pass_context
def install(ctx: click.Context, packages: tuple[str, ...], local: bool, force: bool) -> None:
    """安装包（任一失败即中止）"""
    _prepare(ctx)
    for name in packages:
        try:
            pkg = api.install(name, local=local, force=force)
        except CometError as e:
            raise click.ClickException(f"安装 {name} 失败: {e}") from e
        click.echo(f"已安装: {pkg.name} {pkg.version}")


@click.command()
@click.argument("packages", nargs=-1, required=True)
@click.option("--force", "-f", is_flag=True, help="即使被其他包依赖也删除")
@click.pass_context
def remove(ctx: click.Context, packages: tuple[str, ...], force: bool) -> None:
    """删除包（任一失败即中止）"""
    _prepare(ctx)
    for name in packages:
        try:
            api.remove(name, force=force)
        except CometError as e:
            raise click.ClickException(f"删除 {name} 失败: {e}") from e
        click.echo(f"已删除: {name}")


@click.command()
@click.argument("package")
@click.pass_context
def update(ctx: click.Context, package: str) -> None:
    """更新单个包到缓存中的最新版本"""
    _prepare(ctx)
    try:
        pkg = api.update(package)
    except CometError as e:
        raise click.ClickException(f"更新 {package} 失败: {e}") from e
    click.echo(f"已更新: {pkg.name} {pkg.version}")


@click.command(name="update-all")
@click.pass_context
def update_all(ctx: click.Context) -> None:
    """更新全部已安装包，单个失败只报告不中止"""
    _prepare(ctx)
    results = api.update_all()
    for name, error in sorted(results.items()):
        if error is None:
            click.echo(f"  {name:20s} 已更新")
        else:
            click.echo(f"  {name:20s} 跳过: {error}")
