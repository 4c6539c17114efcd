"""集中配置管理

配置文件位于平台相关的固定路径（可用 COMET_CONFIG 环境变量覆盖），
由 setup() 首次写入，之后只会被整体替换。

首次需要时懒加载；文件缺失或内容无效时重新执行一次 setup() 后重试，
仍失败则抛 ConfigError。
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from comet.core.exceptions import ConfigError
from comet.utils.yaml_io import load_yaml, save_yaml

logger = logging.getLogger(__name__)

CONFIG_ENV = "COMET_CONFIG"

DEFAULT_REPOSITORY = "https://repo.wombatlinux.org"

# (配置文件, storage_dir, tmp_dir)
_PLATFORM_PATHS: dict[str, tuple[str, str, str]] = {
    "linux": ("/etc/comet/config.yml", "/var/lib/comet", "/tmp"),
    "win32": (
        "C:\\Program Files\\Comet\\config.yml",
        "C:\\Program Files\\Comet",
        "C:\\Windows\\Temp",
    ),
    "darwin": (
        "/Library/Application Support/Comet/config.yml",
        "/Library/Application Support/Comet",
        "/tmp",
    ),
}


def _platform_paths() -> tuple[str, str, str]:
    return _PLATFORM_PATHS.get(sys.platform, _PLATFORM_PATHS["linux"])


def default_config_path() -> Path:
    """配置文件路径：COMET_CONFIG 优先，否则取平台默认值"""
    override = os.getenv(CONFIG_ENV)
    if override:
        return Path(override)
    return Path(_platform_paths()[0])


@dataclass
class Config:
    """包管理器全局配置"""

    repositories: list[str] = field(default_factory=list)
    keep_package_files: bool = False
    storage_dir: str = ""
    tmp_dir: str = ""

    @classmethod
    def default_for_platform(cls) -> Config:
        _, storage_dir, tmp_dir = _platform_paths()
        return cls(
            repositories=[DEFAULT_REPOSITORY],
            keep_package_files=False,
            storage_dir=storage_dir,
            tmp_dir=tmp_dir,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        missing = [k for k in ("repositories", "storage_dir", "tmp_dir") if k not in data]
        if missing:
            raise ConfigError(f"配置缺少字段: {', '.join(missing)}")

        repos = data["repositories"] or []
        if not isinstance(repos, list) or not all(isinstance(r, str) for r in repos):
            raise ConfigError("repositories 必须是 URL 字符串列表")
        keep = data.get("keep_package_files", False)
        if not isinstance(keep, bool):
            raise ConfigError("keep_package_files 必须是布尔值")
        for key in ("storage_dir", "tmp_dir"):
            if not isinstance(data[key], str) or not data[key]:
                raise ConfigError(f"{key} 必须是非空路径")

        return cls(
            repositories=list(repos),
            keep_package_files=keep,
            storage_dir=data["storage_dir"],
            tmp_dir=data["tmp_dir"],
        )

    @classmethod
    def from_file(cls, path: str | Path) -> Config:
        """从 YAML 文件读取，缺失或无效时抛 ConfigError（不做自愈）"""
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"配置文件不存在: {p}")
        try:
            data = load_yaml(p)
        except (yaml.YAMLError, OSError, ValueError) as e:
            raise ConfigError(f"读取配置文件失败: {p}: {e}") from e
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def save(self, path: str | Path) -> None:
        save_yaml(path, self.to_dict())

    # ---- 派生路径 ----

    @property
    def ledger_file(self) -> Path:
        return Path(self.storage_dir) / "repo.yml"

    @property
    def cache_file(self) -> Path:
        return Path(self.storage_dir) / "cache.yml"

    @property
    def scripts_dir(self) -> Path:
        return Path(self.storage_dir) / "scripts"

    @property
    def lock_file(self) -> Path:
        return Path(self.storage_dir) / ".comet.lock"


def load_config(path: str | Path | None = None) -> Config:
    """读取配置；失败时执行一次 setup() 后重试"""
    p = Path(path) if path else default_config_path()
    try:
        return Config.from_file(p)
    except ConfigError as e:
        logger.warning("配置无效，重新初始化: %s (%s)", p, e)

    from comet.core.setup import setup

    try:
        setup(p)
        return Config.from_file(p)
    except ConfigError as e:
        raise ConfigError(f"重新初始化后配置仍无效: {p}: {e}") from e


# 全局单例，首次使用时懒加载
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则从默认路径加载）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = load_config()
    return _current


def init_config(path: str | Path | None = None) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = load_config(path)
    logger.info("配置已加载: %s", path or default_config_path())
    return _current


def set_config(config: Config) -> None:
    """直接注入配置实例（测试或嵌入场景）"""
    global _current  # noqa: PLW0603
    _current = config


def reset_config() -> None:
    global _current  # noqa: PLW0603
    _current = None
