"""扁平导出层：供非 Python 调用方（ctypes 包装、嵌入解释器等）使用

每个函数镜像 comet.api 中的同名操作，只返回布尔成功标志或可选字符串，
具体错误仅记录到日志。需要错误细节的调用方应直接使用 comet.api。
"""

from __future__ import annotations

import logging

from comet import api
from comet.core.exceptions import CometError

logger = logging.getLogger(__name__)


def _format_versions(versions: dict[str, str]) -> str:
    return "".join(f"{name}: {version}\n" for name, version in versions.items())


def install(package: str, local: bool = False, force: bool = False) -> bool:
    try:
        api.install(package, local=local, force=force)
    except CometError as e:
        logger.error("install %s 失败: %s", package, e)
        return False
    return True


def remove(package: str, force: bool = False) -> bool:
    try:
        api.remove(package, force=force)
    except CometError as e:
        logger.error("remove %s 失败: %s", package, e)
        return False
    return True


def update(package: str) -> bool:
    try:
        api.update(package)
    except CometError as e:
        logger.error("update %s 失败: %s", package, e)
        return False
    return True


def update_all() -> None:
    try:
        api.update_all()
    except CometError as e:
        logger.error("update_all 失败: %s", e)


def list_installed() -> str:
    try:
        return _format_versions(api.list_installed())
    except CometError as e:
        logger.error("list 失败: %s", e)
        return ""


def list_available() -> str:
    try:
        return _format_versions(api.list_available())
    except CometError as e:
        logger.error("list_available 失败: %s", e)
        return ""


def update_cache() -> bool:
    try:
        api.refresh_cache()
    except CometError as e:
        logger.error("update_cache 失败: %s", e)
        return False
    return True


def check_perms() -> bool:
    try:
        return api.check_permissions()
    except CometError as e:
        logger.error("check_perms 失败: %s", e)
        return False


def setup_comet() -> bool:
    try:
        api.setup()
    except CometError as e:
        logger.error("setup 失败: %s", e)
        return False
    return True


def package_details(package: str) -> str | None:
    try:
        return api.describe(package)
    except CometError as e:
        logger.error("package_details %s 失败: %s", package, e)
        return None
