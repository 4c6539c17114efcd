"""缓存同步：合并所有仓库源的包索引，重建 cache.yml

合并规则（跨源"最新者胜"）:
  - 累加器中没有该包名 → 插入
  - 已有 → 仅当远程版本严格大于当前条目时替换
相同或更旧的版本永远不会覆盖先出现的源。
"""

from __future__ import annotations

import logging

from comet.core.config import Config
from comet.core.exceptions import StorageError
from comet.core.repository import Repository
from comet.utils import net
from comet.utils.filelock import locked

logger = logging.getLogger(__name__)


def merge_into(acc: Repository, remote: Repository) -> int:
    """把 remote 合并进 acc，返回插入或替换的条目数"""
    changed = 0
    for name, pkg in remote.packages.items():
        current = acc.get_package(name)
        if current is None or pkg.semver > current.semver:
            acc.add_package(pkg)
            changed += 1
    return changed


def refresh_cache(config: Config, *, timeout: int = net.DEFAULT_TIMEOUT) -> Repository:
    """删除旧缓存，按源顺序合并远程索引后写入新缓存

    Raises:
        NetworkError / FormatError: 任一仓库源索引拉取或解析失败
        StorageError: 缓存文件无法删除或写入
    """
    try:
        with locked(config.lock_file):
            config.cache_file.unlink(missing_ok=True)

            merged = Repository.new(empty=True)
            for source in config.repositories:
                remote = Repository.load_remote(source, timeout=timeout)
                changed = merge_into(merged, remote)
                logger.info("合并仓库源 %s: %d 个条目更新", source, changed)

            merged.save(config.cache_file)
    except OSError as e:
        raise StorageError(f"更新缓存失败: {e}") from e

    logger.info("缓存已更新: %d 个可用包", len(merged))
    return merged
