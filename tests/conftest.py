"""公共测试夹具：隔离配置目录，伪造仓库源与脚本执行器"""

from __future__ import annotations

import io
import tarfile
from pathlib import Path
from typing import Any

import pytest
import yaml

import comet.core.config as cfgmod
from comet.core.config import Config
from comet.core.exceptions import NetworkError
from comet.core.package import Package
from comet.core.repository import Repository
from comet.utils import net
from comet.utils.shell import CommandResult

SOURCE_A = "https://a.example.com"
SOURCE_B = "https://b.example.com"


def build_archive(
    manifest: dict[str, Any],
    *,
    install: str | None = None,
    remove: str | None = None,
    payload: dict[str, str] | None = None,
) -> bytes:
    """构造未压缩的 .star 归档字节"""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tf:

        def _add(name: str, content: str, mode: int = 0o644) -> None:
            data = content.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = mode
            tf.addfile(info, io.BytesIO(data))

        _add("info.yml", yaml.dump(manifest, sort_keys=False))
        if install is not None:
            _add("install", install, 0o755)
        if remove is not None:
            _add("remove", remove, 0o755)
        pkg_dir = tarfile.TarInfo("package")
        pkg_dir.type = tarfile.DIRTYPE
        pkg_dir.mode = 0o755
        tf.addfile(pkg_dir)
        for name, content in (payload or {}).items():
            _add(f"package/{name}", content)
    return buf.getvalue()


def manifest(name: str, version: str = "1.0.0-", **extra: Any) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": name,
        "description": f"{name} package",
        "version": version,
        "dependencies": {},
        "authors": ["tester"],
        "license": "MIT",
        "checksum": None,
    }
    data.update(extra)
    return data


class FakeRemote:
    """按 URL 响应的伪仓库源，替换 comet.utils.net 的 HTTP 函数"""

    def __init__(self) -> None:
        self.indexes: dict[str, Repository] = {}
        self.archives: dict[str, bytes] = {}
        self.broken: set[str] = set()
        self.requests: list[str] = []

    def publish(
        self,
        source: str,
        pkg: Package,
        archive: bytes | None = None,
    ) -> None:
        self.indexes.setdefault(source, Repository.new(empty=True)).add_package(pkg)
        if archive is not None:
            self.archives[net.join_url(source, f"{pkg.name}.star")] = archive

    def fetch_text(self, url: str, *, timeout: int = net.DEFAULT_TIMEOUT) -> str:
        self.requests.append(url)
        for source, repo in self.indexes.items():
            if url == net.join_url(source, "repo.yml"):
                if source in self.broken:
                    return "packages: [not, a, mapping"
                return repo.to_string()
        raise NetworkError(f"请求失败: {url} - 404")

    def download_file(self, url: str, dest: Path, *, timeout: int = net.DEFAULT_TIMEOUT) -> Path:
        self.requests.append(url)
        if url not in self.archives:
            raise NetworkError(f"下载失败: {url} - 404")
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(self.archives[url])
        return dest


class RecordingExecutor:
    """记录脚本调用的执行器，可指定退出码"""

    def __init__(self, returncode: int = 0) -> None:
        self.returncode = returncode
        self.calls: list[tuple[list[str], str]] = []
        self.scripts: list[str] = []

    def execute(
        self,
        args: list[str],
        *,
        cwd: str,
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        self.calls.append((args, cwd))
        self.scripts.append(Path(args[-1]).read_text(encoding="utf-8"))
        stderr = "boom" if self.returncode else ""
        return CommandResult(returncode=self.returncode, stdout="", stderr=stderr)


@pytest.fixture()
def config(tmp_path: Path) -> Config:
    cfg = Config(
        repositories=[SOURCE_A, SOURCE_B],
        keep_package_files=False,
        storage_dir=str(tmp_path / "storage"),
        tmp_dir=str(tmp_path / "tmp"),
    )
    Path(cfg.storage_dir).mkdir()
    Path(cfg.tmp_dir).mkdir()
    return cfg


@pytest.fixture()
def remote(monkeypatch: pytest.MonkeyPatch) -> FakeRemote:
    fake = FakeRemote()
    monkeypatch.setattr(net, "fetch_text", fake.fetch_text)
    monkeypatch.setattr(net, "download_file", fake.download_file)
    return fake


@pytest.fixture()
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """避免测试读写平台默认配置 /etc/comet/config.yml"""
    monkeypatch.setenv(cfgmod.CONFIG_ENV, str(tmp_path / "etc" / "config.yml"))
    cfgmod.reset_config()
    yield
    cfgmod.reset_config()


@pytest.fixture()
def make_archive():
    return build_archive


@pytest.fixture()
def make_manifest():
    return manifest


@pytest.fixture()
def failing_executor() -> RecordingExecutor:
    return RecordingExecutor(returncode=3)
