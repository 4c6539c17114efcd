"""命令行前端测试（click CliRunner）"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from comet import api
from comet.cli import main
from comet.core.config import Config, default_config_path
from comet.core.package import Package
from comet.utils import shell
from comet.utils.logger import reset_logging


@pytest.fixture()
def runner(config: Config, remote, executor, monkeypatch: pytest.MonkeyPatch):
    config.save(default_config_path())
    monkeypatch.setattr(shell, "_default_executor", executor)
    yield CliRunner()
    reset_logging()


@pytest.fixture()
def published(config: Config, remote, make_archive, make_manifest):
    remote.publish(
        config.repositories[0],
        Package(name="bar", version="1.0.0-", description="Bar tool", license="MIT"),
        make_archive(make_manifest("bar"), install="echo bar\n"),
    )
    remote.publish(config.repositories[1], Package(name="baz", version="0.2.0-"))


class TestInit:
    def test_init(self, runner: CliRunner, config: Config) -> None:
        result = runner.invoke(main, ["init"])
        assert result.exit_code == 0
        assert "初始化完成" in result.output
        assert config.ledger_file.exists()

    def test_config_option(self, runner: CliRunner, config: Config, tmp_path: Path) -> None:
        path = tmp_path / "custom.yml"
        config.save(path)
        result = runner.invoke(main, ["--config", str(path), "list"])
        assert result.exit_code == 0
        assert "system: 1.0.0-" in result.output

    def test_invalid_config(self, runner: CliRunner) -> None:
        default_config_path().write_text("repositories: []\n", encoding="utf-8")
        result = runner.invoke(main, ["init"])
        assert result.exit_code == 1
        assert "初始化失败" in result.output


class TestQueries:
    def test_list_sorted(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["list"])
        assert result.exit_code == 0
        lines = [ln for ln in result.output.splitlines() if ": 1.0.0-" in ln]
        assert lines == ["comet: 1.0.0-", "startools: 1.0.0-", "system: 1.0.0-"]

    def test_list_available_empty(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["list-available"])
        assert result.exit_code == 0
        assert "没有包。" in result.output

    def test_update_cache_then_list(self, runner: CliRunner, published) -> None:
        result = runner.invoke(main, ["update-cache"])
        assert result.exit_code == 0
        assert "2 个可用包" in result.output

        result = runner.invoke(main, ["list-available"])
        assert "bar: 1.0.0-" in result.output
        assert "baz: 0.2.0-" in result.output

    def test_info(self, runner: CliRunner, published) -> None:
        runner.invoke(main, ["update-cache"])
        result = runner.invoke(main, ["info", "bar"])
        assert result.exit_code == 0
        assert "bar - 1.0.0-" in result.output
        assert "Bar tool" in result.output

    def test_info_unknown(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["info", "ghost"])
        assert result.exit_code == 1
        assert "缓存中没有包 ghost" in result.output

    def test_no_permission(self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(api, "check_permissions", lambda: False)
        result = runner.invoke(main, ["list"])
        assert result.exit_code == 1
        assert "没有使用包管理器所需的权限" in result.output


class TestPackages:
    def test_install_and_remove(self, runner: CliRunner, published, executor) -> None:
        runner.invoke(main, ["update-cache"])

        result = runner.invoke(main, ["install", "bar"])
        assert result.exit_code == 0
        assert "已安装: bar 1.0.0-" in result.output
        assert executor.scripts == ["echo bar\n"]

        result = runner.invoke(main, ["remove", "bar"])
        assert result.exit_code == 0
        assert "已删除: bar" in result.output

    def test_install_aborts_on_first_failure(self, runner: CliRunner, published) -> None:
        runner.invoke(main, ["update-cache"])
        result = runner.invoke(main, ["install", "ghost", "bar"])
        assert result.exit_code == 1
        assert "安装 ghost 失败" in result.output
        assert "已安装: bar" not in result.output

    def test_install_local(
        self, runner: CliRunner, tmp_path: Path, make_archive, make_manifest,
    ) -> None:
        src = tmp_path / "qux.star"
        src.write_bytes(make_archive(make_manifest("qux", "3.0.0-")))
        result = runner.invoke(main, ["install", "--local", str(src)])
        assert result.exit_code == 0
        assert "已安装: qux 3.0.0-" in result.output

    def test_remove_in_use(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["remove", "system"])
        assert result.exit_code == 1
        assert "删除 system 失败" in result.output

    def test_remove_force(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["remove", "-f", "system"])
        assert result.exit_code == 0

    def test_update_up_to_date(self, runner: CliRunner, published, config: Config) -> None:
        runner.invoke(main, ["update-cache"])
        runner.invoke(main, ["install", "bar"])
        result = runner.invoke(main, ["update", "bar"])
        assert result.exit_code == 1
        assert "已是最新版本" in result.output

    def test_update_all_reports_and_continues(self, runner: CliRunner, published) -> None:
        runner.invoke(main, ["update-cache"])
        result = runner.invoke(main, ["update-all"])
        assert result.exit_code == 0
        for name in ("comet", "startools", "system"):
            assert name in result.output
        assert "跳过" in result.output
