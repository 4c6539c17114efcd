"""生命周期脚本执行

install / remove 脚本一律用 `sh <绝对路径>` 同步执行，工作目录通过 cwd
显式传入，不修改进程自身的当前目录。子进程调用经 CommandExecutor 协议抽象，
测试可注入记录型实现。
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from comet.core.exceptions import ScriptFailedError

logger = logging.getLogger(__name__)

# 失败时错误信息里保留的输出长度
_OUTPUT_TAIL = 500


@dataclass
class CommandResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandExecutor(Protocol):
    """子进程执行协议，args 为已拆分的参数列表"""

    def execute(
        self,
        args: list[str],
        *,
        cwd: str,
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        ...


class LocalExecutor:
    """在本机直接起子进程"""

    def execute(
        self,
        args: list[str],
        *,
        cwd: str,
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        try:
            r = subprocess.run(
                args, capture_output=True, text=True,
                cwd=cwd, env=env, check=False, timeout=timeout,
            )
        except FileNotFoundError as e:
            # 解释器本身不存在，按 shell 惯例返回 127
            return CommandResult(returncode=127, stdout="", stderr=str(e))
        return CommandResult(returncode=r.returncode, stdout=r.stdout, stderr=r.stderr)


_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局执行器（测试或嵌入场景）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor


def run_script(
    script: Path,
    *,
    cwd: Path,
    executor: CommandExecutor | None = None,
    label: str = "script",
) -> CommandResult:
    """执行脚本并检查退出码

    script 和 cwd 先解析为绝对路径；executor 缺省时使用全局执行器。

    Raises:
        ScriptFailedError: 非零退出，携带退出码和输出尾部
    """
    script = script.resolve()
    cwd = cwd.resolve()
    ex = executor or get_executor()

    logger.info("  %s: sh %s (cwd=%s)", label, script, cwd)
    r = ex.execute(["sh", str(script)], cwd=str(cwd))
    if r.stdout:
        logger.debug("  %s 输出: %s", label, r.stdout[-2000:])

    if not r.success:
        output = (r.stderr or r.stdout)[-_OUTPUT_TAIL:]
        logger.error("  %s 失败 (rc=%d): %s", label, r.returncode, output.strip())
        raise ScriptFailedError(str(script), r.returncode, output)
    return r
