"""安装引擎：install / remove / update 状态机

install 的步骤（顺序执行，不自动重试）:
  1. 读取账本，已安装且未指定 force → AlreadyInstalledError
  2. 获取归档: 远程经 PackageFetcher 下载到 tmp_dir/<name>.star；
     本地则复制到 tmp_dir，包名取文件名第一个 '.' 之前的部分
  3. 解压到 tmp_dir/<name>/
  4. 解析 info.yml
  5. 按声明顺序解析依赖：已安装且版本满足 → 跳过；
     缓存中版本满足 → 递归安装（非强制、远程）；否则 DependencyUnresolvedError
  6. 同步执行 install 脚本，非零退出 → ScriptFailedError
  7. 把 remove 脚本归档到 storage_dir/scripts/<name>
  8. 删除解压目录和归档（任何退出路径都会清理）
  9. 写入账本

已经装好的依赖在后续失败时不会回滚。
"""

from __future__ import annotations

import logging
import shutil
import tarfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from comet.core.acquisition import PackageFetcher
from comet.core.config import Config
from comet.core.exceptions import (
    AlreadyInstalledError,
    CometError,
    DependencyCycleError,
    DependencyUnresolvedError,
    FormatError,
    InUseError,
    NotCachedError,
    NotFoundError,
    StorageError,
    UpToDateError,
)
from comet.core.package import Package
from comet.core.repository import Repository
from comet.core.semver import is_at_least
from comet.utils.filelock import locked
from comet.utils.shell import CommandExecutor, run_script

logger = logging.getLogger(__name__)

MANIFEST_FILE = "info.yml"
INSTALL_SCRIPT = "install"
REMOVE_SCRIPT = "remove"


def working_name(archive: str | Path) -> str:
    """归档文件名第一个 '.' 之前的部分，如 foo.star -> foo"""
    name = Path(archive).name.split(".", 1)[0]
    if not name:
        raise FormatError(f"无法从归档文件名推导包名: {archive}")
    return name


@contextmanager
def scoped_workspace(archive: Path, extract_dir: Path) -> Iterator[Path]:
    """持有归档和解压目录，退出时（无论成功失败）一并删除"""
    try:
        yield extract_dir
    finally:
        try:
            shutil.rmtree(extract_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("清理解压目录失败: %s (%s)", extract_dir, e)
        try:
            archive.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("清理归档失败: %s (%s)", archive, e)


class Installer:
    """包生命周期引擎

    账本和缓存每次从磁盘重新读取；递归安装依赖时记录正在解析的包名，
    同一包名在调用栈上重复出现即判定为循环依赖。
    """

    def __init__(
        self,
        config: Config,
        fetcher: PackageFetcher | None = None,
        executor: CommandExecutor | None = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher or PackageFetcher(config)
        self.executor = executor
        self._resolving: list[str] = []

    @property
    def tmp_dir(self) -> Path:
        return Path(self.config.tmp_dir).resolve()

    def ledger(self) -> Repository:
        return Repository.load(self.config.ledger_file)

    # ------------------------------------------------------------------
    # install
    # ------------------------------------------------------------------

    def install(self, name: str, local: bool = False, force: bool = False) -> Package:
        """安装远程包（name 为包名）或本地归档（name 为归档路径）

        返回写入账本的 Package。
        """
        pkg_name = working_name(name) if local else name

        if pkg_name in self._resolving:
            raise DependencyCycleError([*self._resolving, pkg_name])

        if self.ledger().get_package(pkg_name) is not None and not force:
            raise AlreadyInstalledError(f"包 {pkg_name} 已安装，使用 --force 重新安装")

        logger.info("安装: %s%s", pkg_name, " (本地)" if local else "")
        archive = self._acquire_local(Path(name)) if local else self.fetcher.download(name)
        extract_dir = self.tmp_dir / pkg_name

        self._resolving.append(pkg_name)
        try:
            with scoped_workspace(archive, extract_dir):
                self._extract(archive, extract_dir)
                package = Package.from_file(extract_dir / MANIFEST_FILE)
                self._resolve_dependencies(package)
                self._run_install_script(extract_dir)
                self._archive_remove_script(extract_dir, pkg_name)
        finally:
            self._resolving.pop()

        if self.config.keep_package_files:
            logger.debug("keep_package_files 已开启，但归档在安装后总是被清理")

        self._commit(package)
        logger.info("已安装: %s %s", package.name, package.version)
        return package

    def _acquire_local(self, src: Path) -> Path:
        if not src.is_file():
            raise NotFoundError(f"本地归档不存在: {src}")
        dest = self.tmp_dir / src.name
        if not dest.exists():
            try:
                self.tmp_dir.mkdir(parents=True, exist_ok=True)
                shutil.copy2(src, dest)
            except OSError as e:
                raise StorageError(f"复制归档到临时目录失败: {src} -> {dest}: {e}") from e
        return dest

    @staticmethod
    def _extract(archive: Path, extract_dir: Path) -> None:
        try:
            extract_dir.mkdir(parents=True, exist_ok=True)
            with tarfile.open(archive) as tf:
                tf.extractall(path=str(extract_dir), filter="data")  # noqa: S202
        except tarfile.TarError as e:
            raise FormatError(f"归档无法解压: {archive}: {e}") from e
        except OSError as e:
            raise StorageError(f"解压失败: {archive} -> {extract_dir}: {e}") from e
        logger.info("  已解压: %s -> %s", archive.name, extract_dir)

    def _resolve_dependencies(self, package: Package) -> None:
        for dep, minimum in package.dependencies.items():
            installed = self.ledger().get_package(dep)
            if installed is not None and is_at_least(installed.version, minimum):
                logger.info("  依赖已满足: %s %s (>= %s)", dep, installed.version, minimum)
                continue

            cached = self.fetcher.cache.get_package(dep)
            if cached is None or not is_at_least(cached.version, minimum):
                raise DependencyUnresolvedError(
                    f"包 {package.name} 的依赖 {dep} >= {minimum} 无法满足"
                )

            logger.info("  安装依赖: %s %s", dep, cached.version)
            try:
                self.install(dep, local=False, force=False)
            except DependencyCycleError:
                raise
            except CometError as e:
                raise DependencyUnresolvedError(f"依赖 {dep} 安装失败: {e}") from e

    def _run_install_script(self, extract_dir: Path) -> None:
        script = extract_dir / INSTALL_SCRIPT
        if script.is_file():
            run_script(script, cwd=extract_dir, executor=self.executor, label="install")

    def _archive_remove_script(self, extract_dir: Path, pkg_name: str) -> None:
        script = extract_dir / REMOVE_SCRIPT
        try:
            self.config.scripts_dir.mkdir(parents=True, exist_ok=True)
            if script.is_file():
                shutil.copy2(script, self.config.scripts_dir / pkg_name)
                logger.info("  已归档 remove 脚本: %s", pkg_name)
        except OSError as e:
            raise StorageError(f"归档 remove 脚本失败: {pkg_name}: {e}") from e

    def _commit(self, package: Package) -> None:
        try:
            with locked(self.config.lock_file):
                ledger = self.ledger()
                ledger.add_package(package)
                ledger.save(self.config.ledger_file)
        except OSError as e:
            raise StorageError(f"写入账本失败: {e}") from e

    # ------------------------------------------------------------------
    # remove
    # ------------------------------------------------------------------

    def remove(self, name: str, force: bool = False) -> None:
        """删除已安装的包，被其他包依赖时需要 force"""
        script = self.config.scripts_dir / name
        try:
            with locked(self.config.lock_file):
                ledger = self.ledger()
                if ledger.get_package(name) is None:
                    raise NotFoundError(f"包 {name} 未安装")
                if ledger.is_dependency(name) and not force:
                    raise InUseError(f"包 {name} 被其他包依赖，使用 --force 强制删除")

                if script.is_file():
                    run_script(
                        script, cwd=self.config.scripts_dir,
                        executor=self.executor, label="remove",
                    )

                ledger.remove_package(name)
                ledger.save(self.config.ledger_file)
            script.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"删除包 {name} 失败: {e}") from e
        logger.info("已删除: %s", name)

    # ------------------------------------------------------------------
    # update
    # ------------------------------------------------------------------

    def update(self, name: str) -> Package:
        """缓存版本严格高于已安装版本时强制重装"""
        installed = self.ledger().get_package(name)
        if installed is None:
            raise NotFoundError(f"包 {name} 未安装，请使用 install 命令")

        cached = self.fetcher.cache.get_package(name)
        if cached is None:
            raise NotCachedError(f"包 {name} 不在缓存中，请先更新缓存后重试")

        if cached.semver <= installed.semver:
            raise UpToDateError(f"包 {name} 已是最新版本 ({installed.version})")

        logger.info("更新: %s %s -> %s", name, installed.version, cached.version)
        return self.install(name, local=False, force=True)

    def update_all(self) -> dict[str, CometError | None]:
        """逐个更新所有已安装包，单个失败不影响其余包

        返回 {包名: None（已更新）| 异常}。
        """
        results: dict[str, CometError | None] = {}
        for name in list(self.ledger().packages):
            try:
                self.update(name)
                results[name] = None
            except UpToDateError as e:
                logger.info("%s", e)
                results[name] = e
            except CometError as e:
                logger.warning("更新失败: %s (%s)", name, e)
                results[name] = e
        updated = sum(1 for r in results.values() if r is None)
        logger.info("更新汇总: %d 个已更新, %d 个未更新", updated, len(results) - updated)
        return results
