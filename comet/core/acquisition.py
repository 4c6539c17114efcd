"""包获取：按仓库源下载归档并校验

策略:
  1. 本地缓存 (cache.yml) 是"包是否存在"的权威来源，未缓存直接拒绝
  2. 按配置顺序扫描仓库源，第一个列出该包的源胜出（无回退、无排序）
  3. 下载 <source>/<name>.star 到 tmp_dir/<name>.star
  4. 缓存记录带 checksum 时校验 SHA-256，不带则跳过校验
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from comet.core.config import Config
from comet.core.exceptions import (
    ChecksumMismatchError,
    NotCachedError,
    NotFoundError,
    StorageError,
)
from comet.core.repository import Repository
from comet.utils import net

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".star"


def compute_checksum(path: Path) -> str:
    """文件内容的小写十六进制 SHA-256"""
    sha256 = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            sha256.update(chunk)
    return sha256.hexdigest()


def archive_name(name: str) -> str:
    return f"{name}{ARCHIVE_SUFFIX}"


class PackageFetcher:
    """包归档拉取器 - 缓存判定 + 首个匹配源下载 + 校验"""

    def __init__(
        self,
        config: Config,
        cache: Repository | None = None,
        timeout: int = net.DEFAULT_TIMEOUT,
    ) -> None:
        self.config = config
        self._cache = cache
        self.timeout = timeout

    @property
    def cache(self) -> Repository:
        """未注入时每次从 cache.yml 重新读取，反映最新的缓存刷新"""
        if self._cache is not None:
            return self._cache
        return Repository.load(self.config.cache_file)

    def archive_path(self, name: str) -> Path:
        return Path(self.config.tmp_dir) / archive_name(name)

    def find_source(self, name: str) -> str | None:
        """返回第一个列出该包的仓库源 URL，全部不含则返回 None"""
        for source in self.config.repositories:
            remote = Repository.load_remote(source, timeout=self.timeout)
            if remote.get_package(name) is not None:
                logger.info("仓库源命中: %s -> %s", name, source)
                return source
        return None

    def download(self, name: str) -> Path:
        """下载并校验包归档，返回本地归档路径

        Raises:
            NotCachedError: 本地缓存中没有该包
            NotFoundError: 没有任何仓库源列出该包
            NetworkError: 仓库索引或归档下载失败
            ChecksumMismatchError: 下载内容与缓存记录的 checksum 不一致
        """
        cached = self.cache.get_package(name)
        if cached is None:
            raise NotCachedError(f"包 {name} 不在缓存中，请先更新缓存后重试")

        source = self.find_source(name)
        if source is None:
            raise NotFoundError(f"没有仓库源提供包 {name}，请更新缓存后重试")

        dest = self.archive_path(name)
        try:
            net.download_file(net.join_url(source, archive_name(name)), dest, timeout=self.timeout)
            if cached.checksum:
                self._verify_checksum(dest, cached.checksum)
            else:
                logger.info("  缓存记录无 checksum，跳过校验: %s", name)
        except OSError as e:
            raise StorageError(f"保存归档失败: {dest}: {e}") from e
        return dest

    def _verify_checksum(self, path: Path, expected: str) -> None:
        actual = compute_checksum(path)
        if actual != expected.lower():
            path.unlink(missing_ok=True)
            raise ChecksumMismatchError(
                f"校验和不匹配 {path.name}: 期望 {expected}, 实际 {actual}",
            )
        logger.info("  校验和通过: %s", path.name)
