"""YAML 读写

账本 (repo.yml)、缓存 (cache.yml)、配置 (config.yml) 和包清单 (info.yml)
都经过这里：统一 utf-8，保持键顺序，落盘一律原子替换。
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 仓库索引可能来自不受信任的源，超过此大小直接拒绝
MAX_YAML_SIZE = 10 * 1024 * 1024


def atomic_write(path: Path, content: str) -> None:
    """写同目录临时文件后 os.replace，读者只会看到旧内容或新内容"""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, path)
    except Exception:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def parse_yaml(text: str) -> Any:
    """解析内存中的 YAML 文本（远程索引、清单），空文档得到 None"""
    return yaml.safe_load(text)


def dump_yaml(data: Any) -> str:
    return yaml.dump(
        data, default_flow_style=False,
        allow_unicode=True, sort_keys=False,
    )


def load_yaml(path: str | Path) -> dict[str, Any]:
    """读取 YAML 映射文件

    文件不存在、为空或顶层不是映射时返回 {}。

    Raises:
        yaml.YAMLError: 格式错误
        OSError: 读取失败
        ValueError: 超过 MAX_YAML_SIZE
    """
    p = Path(path)
    if not p.exists():
        return {}

    size = p.stat().st_size
    if size > MAX_YAML_SIZE:
        raise ValueError(f"YAML 文件过大: {p} ({size} 字节, 上限 {MAX_YAML_SIZE})")

    try:
        data = parse_yaml(p.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError) as e:
        logger.error("读取 YAML 失败: %s (%s)", p, e)
        raise

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("%s 顶层不是映射 (%s)，按空文档处理", p, type(data).__name__)
        return {}
    return data


def save_yaml(path: str | Path, data: Any) -> None:
    """序列化后原子写入，失败时原文件保持不变"""
    p = Path(path)
    try:
        atomic_write(p, dump_yaml(data))
    except (yaml.YAMLError, OSError) as e:
        logger.error("写入 YAML 失败: %s (%s)", p, e)
        raise
