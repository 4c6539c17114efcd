"""网络工具：URL 安全校验 + 阻塞式 HTTP GET"""

from __future__ import annotations

import logging
import shutil
import urllib.error
import urllib.request
from pathlib import Path
from urllib.parse import urlparse

from comet.core.exceptions import FormatError, NetworkError

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = frozenset(("http", "https"))

DEFAULT_TIMEOUT = 60


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https，防止 file:// 等非预期协议访问

    Raises:
        NetworkError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise NetworkError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )


def join_url(base: str, name: str) -> str:
    return f"{base.rstrip('/')}/{name}"


def fetch_text(url: str, *, timeout: int = DEFAULT_TIMEOUT) -> str:
    """GET 文本内容，失败抛 NetworkError"""
    validate_url_scheme(url, context="fetch")
    logger.debug("GET %s", url)
    try:
        with urllib.request.urlopen(url, timeout=timeout) as resp:  # nosec B310
            charset = resp.headers.get_content_charset() or "utf-8"
            return resp.read().decode(charset)
    except (urllib.error.HTTPError, urllib.error.URLError, OSError) as e:
        raise NetworkError(f"请求失败: {url} - {e}") from e
    except UnicodeDecodeError as e:
        raise FormatError(f"响应不是文本: {url} - {e}") from e


def download_file(url: str, dest: Path, *, timeout: int = DEFAULT_TIMEOUT) -> Path:
    """下载文件到 dest，失败时删除残留文件并抛 NetworkError"""
    validate_url_scheme(url, context=f"download {dest.name}")
    dest.parent.mkdir(parents=True, exist_ok=True)
    logger.info("  下载: %s", url)
    try:
        with urllib.request.urlopen(url, timeout=timeout) as resp, \
                open(dest, "wb") as f:  # nosec B310
            shutil.copyfileobj(resp, f)
    except (urllib.error.HTTPError, urllib.error.URLError, OSError) as e:
        dest.unlink(missing_ok=True)
        raise NetworkError(f"下载失败: {url} - {e}") from e
    logger.info("  已保存: %s", dest)
    return dest
