"""前端调用的公共函数

CLI 及其他前端只通过这里访问包管理器；所有函数使用全局配置
（comet.core.config.get_config），首次调用时懒加载。

用法:
    from comet import api

    api.setup()
    api.refresh_cache()
    api.install("bar")
    api.list_installed()   # {"bar": "1.0.0-", ...}
"""

from __future__ import annotations

from pathlib import Path

from comet.core import cache_sync
from comet.core import setup as setup_mod
from comet.core.config import Config, get_config, set_config
from comet.core.exceptions import CometError
from comet.core.installer import Installer
from comet.core.package import Package
from comet.core.repository import Repository


def _installer() -> Installer:
    return Installer(get_config())


def install(name: str, local: bool = False, force: bool = False) -> Package:
    return _installer().install(name, local=local, force=force)


def remove(name: str, force: bool = False) -> None:
    _installer().remove(name, force=force)


def update(name: str) -> Package:
    return _installer().update(name)


def update_all() -> dict[str, CometError | None]:
    return _installer().update_all()


def refresh_cache() -> Repository:
    return cache_sync.refresh_cache(get_config())


def list_installed() -> dict[str, str]:
    """已安装包 {包名: 版本}"""
    return Repository.load(get_config().ledger_file).versions()


def list_available() -> dict[str, str]:
    """缓存中的可用包 {包名: 版本}"""
    return Repository.load(get_config().cache_file).versions()


def describe(name: str) -> str | None:
    """缓存中包的详情文本，未知包返回 None"""
    pkg = Repository.load(get_config().cache_file).get_package(name)
    return pkg.details() if pkg else None


def check_permissions() -> bool:
    return setup_mod.check_permissions(get_config())


def setup(config_path: str | Path | None = None) -> Config:
    """幂等初始化，并把结果设为全局配置"""
    config = setup_mod.setup(config_path)
    set_config(config)
    return config
