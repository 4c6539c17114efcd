"""统一异常体系

所有业务异常继承 CometError，调用方（CLI、compat 导出层）据此输出友好提示。
每个异常带 code，便于日志检索和前端映射。
"""

from __future__ import annotations


class CometError(Exception):
    """包管理器基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(CometError):
    """配置文件缺失或内容无效（自愈重试后仍失败）"""

    code = "CONFIG_ERROR"


class FormatError(CometError):
    """版本号、包清单或 YAML 文档无法解析"""

    code = "FORMAT_ERROR"


class NotFoundError(CometError):
    """包在本地账本、归档路径或任何仓库源中都不存在"""

    code = "NOT_FOUND"


class NotCachedError(NotFoundError):
    """包不在本地缓存中，需要先刷新缓存"""

    code = "NOT_CACHED"


class AlreadyInstalledError(CometError):
    """包已安装且未指定 force"""

    code = "ALREADY_INSTALLED"


class DependencyUnresolvedError(CometError):
    """依赖既未安装到满足的版本，也无法从缓存安装"""

    code = "DEPENDENCY_UNRESOLVED"


class DependencyCycleError(DependencyUnresolvedError):
    """递归安装依赖时遇到循环"""

    code = "DEPENDENCY_CYCLE"

    def __init__(self, chain: list[str]) -> None:
        super().__init__(f"检测到循环依赖: {' -> '.join(chain)}")
        self.chain = chain


class InUseError(CometError):
    """包被其他已安装包依赖，未指定 force 时禁止删除"""

    code = "IN_USE"


class UpToDateError(CometError):
    """缓存中的版本不高于已安装版本"""

    code = "UP_TO_DATE"


class ChecksumMismatchError(CometError):
    """下载内容的 SHA-256 与缓存记录不一致"""

    code = "CHECKSUM_MISMATCH"


class NetworkError(CometError):
    """HTTP 请求失败"""

    code = "NETWORK_ERROR"


class StorageError(CometError):
    """文件系统操作失败（解压、复制、删除、写入）"""

    code = "STORAGE_ERROR"


class ScriptFailedError(CometError):
    """install / remove 脚本以非零状态退出"""

    code = "SCRIPT_FAILED"

    def __init__(self, script: str, exit_code: int, output: str = "") -> None:
        super().__init__(f"脚本执行失败 (rc={exit_code}): {script}")
        self.script = script
        self.exit_code = exit_code
        self.output = output
