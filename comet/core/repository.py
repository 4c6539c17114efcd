"""包仓库：包名到 Package 的持久化映射

同一结构用于两个独立的存储:
  - 账本 (repo.yml):  已安装的包，全新账本预置 3 个引导包
  - 缓存 (cache.yml): 各仓库源合并后的最新可用包，全新缓存为空

文件格式:
    packages:
      <name>:
        name: <name>
        version: 1.0.0-
        ...
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from comet.core.exceptions import FormatError
from comet.core.package import Package
from comet.utils import net
from comet.utils.yaml_io import dump_yaml, load_yaml, parse_yaml, save_yaml

logger = logging.getLogger(__name__)

REMOTE_INDEX = "repo.yml"

BASE_VERSION = "1.0.0-"


def _bootstrap_packages() -> list[Package]:
    """全新账本的引导包：基础系统、包管理器自身和打包工具"""
    base_deps = {"system": BASE_VERSION}
    authors = ["Wombat Linux"]
    return [
        Package(
            name="system", version=BASE_VERSION,
            description="The base system for Wombat Linux",
            license="MIT", authors=list(authors),
        ),
        Package(
            name="comet", version=BASE_VERSION,
            description="The package manager for Wombat Linux",
            dependencies=dict(base_deps), license="MIT", authors=list(authors),
        ),
        Package(
            name="startools", version=BASE_VERSION,
            description="A utility for managing stars",
            dependencies=dict(base_deps), license="MIT", authors=list(authors),
        ),
    ]


class Repository:
    """包名 -> Package 映射，键始终等于 Package.name"""

    def __init__(self, packages: dict[str, Package] | None = None) -> None:
        self.packages: dict[str, Package] = {}
        for pkg in (packages or {}).values():
            self.add_package(pkg)

    @classmethod
    def new(cls, empty: bool) -> Repository:
        """empty=True 用于缓存（空仓库），empty=False 用于账本（预置引导包）"""
        repo = cls()
        if not empty:
            for pkg in _bootstrap_packages():
                repo.add_package(pkg)
        return repo

    # ------------------------------------------------------------------
    # 增删查
    # ------------------------------------------------------------------

    def add_package(self, package: Package) -> None:
        """按包名覆盖写入"""
        self.packages[package.name] = package

    def remove_package(self, name: str) -> None:
        self.packages.pop(name, None)

    def get_package(self, name: str) -> Package | None:
        return self.packages.get(name)

    def is_dependency(self, name: str) -> bool:
        """是否有其他包把 name 声明为依赖"""
        return any(
            name in pkg.dependencies
            for pkg_name, pkg in self.packages.items()
            if pkg_name != name
        )

    def versions(self) -> dict[str, str]:
        return {name: pkg.version for name, pkg in self.packages.items()}

    def __contains__(self, name: object) -> bool:
        return name in self.packages

    def __len__(self) -> int:
        return len(self.packages)

    # ------------------------------------------------------------------
    # 序列化
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Any) -> Repository:
        if not isinstance(data, dict):
            raise FormatError(f"仓库文档必须是映射类型, 实际: {type(data).__name__}")
        entries = data.get("packages") or {}
        if not isinstance(entries, dict):
            raise FormatError("仓库文档的 packages 必须是映射")
        repo = cls()
        for key, info in entries.items():
            if isinstance(info, dict):
                info = {"name": key, **info}
            repo.add_package(Package.from_dict(info))
        return repo

    def to_dict(self) -> dict[str, Any]:
        return {
            "packages": {
                name: pkg.to_dict() for name, pkg in self.packages.items()
            },
        }

    @classmethod
    def from_string(cls, text: str) -> Repository:
        try:
            data = parse_yaml(text)
        except yaml.YAMLError as e:
            raise FormatError(f"仓库文档 YAML 格式错误: {e}") from e
        return cls.from_dict(data)

    def to_string(self) -> str:
        return dump_yaml(self.to_dict())

    # ------------------------------------------------------------------
    # 持久化
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, path: str | Path) -> Repository:
        """从文件加载；文件缺失或内容无效时返回空仓库"""
        p = Path(path)
        if not p.exists():
            logger.warning("仓库文件不存在，使用空仓库: %s", p)
            return cls.new(empty=True)
        try:
            return cls.from_dict(load_yaml(p))
        except (FormatError, yaml.YAMLError, OSError, ValueError) as e:
            logger.warning("仓库文件无效，使用空仓库: %s (%s)", p, e)
            return cls.new(empty=True)

    @classmethod
    def load_remote(cls, base_url: str, *, timeout: int = net.DEFAULT_TIMEOUT) -> Repository:
        """拉取 <base_url>/repo.yml；网络错误抛 NetworkError，格式错误抛 FormatError"""
        url = net.join_url(base_url, REMOTE_INDEX)
        text = net.fetch_text(url, timeout=timeout)
        repo = cls.from_string(text)
        logger.info("远程仓库 %s: %d 个包", base_url, len(repo))
        return repo

    def save(self, path: str | Path) -> None:
        save_yaml(path, self.to_dict())
