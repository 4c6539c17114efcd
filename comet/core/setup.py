"""首次运行初始化与权限检查

setup() 是幂等的：只创建缺失的目录和文件，从不覆盖已有内容。
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from comet.core.config import Config, default_config_path
from comet.core.exceptions import StorageError
from comet.core.repository import Repository

logger = logging.getLogger(__name__)


def setup(config_path: str | Path | None = None) -> Config:
    """初始化配置文件、storage/tmp 目录、账本和缓存

    Raises:
        ConfigError: 已存在的配置文件无效
        StorageError: 目录或文件无法创建
    """
    path = Path(config_path) if config_path else default_config_path()

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if not path.exists():
            Config.default_for_platform().save(path)
            logger.info("已写入默认配置: %s", path)
    except OSError as e:
        raise StorageError(f"无法创建配置文件 {path}: {e}") from e

    config = Config.from_file(path)

    try:
        Path(config.tmp_dir).mkdir(parents=True, exist_ok=True)
        Path(config.storage_dir).mkdir(parents=True, exist_ok=True)

        if not config.cache_file.exists():
            Repository.new(empty=True).save(config.cache_file)
            logger.info("已创建空缓存: %s", config.cache_file)

        if not config.ledger_file.exists():
            Repository.new(empty=False).save(config.ledger_file)
            logger.info("已创建账本: %s", config.ledger_file)
    except OSError as e:
        raise StorageError(f"初始化存储目录失败: {e}") from e

    return config


def check_permissions(config: Config) -> bool:
    """storage_dir 和 tmp_dir 均存在且可写"""
    for location in (config.storage_dir, config.tmp_dir):
        if not os.path.isdir(location) or not os.access(location, os.W_OK):
            logger.warning("无写入权限: %s", location)
            return False
    return True
