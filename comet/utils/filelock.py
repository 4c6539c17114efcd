"""咨询式文件锁：保护 repo.yml / cache.yml 的读-改-写周期

同一 storage_dir 上并发运行的多个 comet 进程通过 flock 串行化，
配合 yaml_io 的原子写入，避免交错的读-改-写互相覆盖。
仅支持 POSIX 平台。
"""

from __future__ import annotations

import fcntl
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


@contextmanager
def locked(lock_path: Path) -> Iterator[None]:
    """持有 lock_path 上的排他锁直到退出上下文

    锁文件本身不承载数据，不存在时自动创建。
    """
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with open(lock_path, "w") as lock_file:
        fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
        logger.debug("已获取锁: %s", lock_path)
        try:
            yield
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
