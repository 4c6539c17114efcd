"""首次运行初始化测试"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml

from comet.core.config import Config
from comet.core.exceptions import ConfigError
from comet.core.repository import Repository
from comet.core.setup import check_permissions, setup


def _config_file(tmp_path: Path) -> Path:
    path = tmp_path / "etc" / "config.yml"
    Config(
        repositories=["https://a.example.com"],
        storage_dir=str(tmp_path / "storage"),
        tmp_dir=str(tmp_path / "tmp"),
    ).save(path)
    return path


class TestSetup:
    def test_creates_layout(self, tmp_path: Path) -> None:
        cfg = setup(_config_file(tmp_path))
        assert Path(cfg.storage_dir).is_dir()
        assert Path(cfg.tmp_dir).is_dir()
        assert len(Repository.load(cfg.cache_file)) == 0
        assert set(Repository.load(cfg.ledger_file).versions()) == {
            "system", "comet", "startools",
        }

    def test_idempotent(self, tmp_path: Path) -> None:
        path = _config_file(tmp_path)
        cfg = setup(path)
        ledger = Repository.load(cfg.ledger_file)
        ledger.remove_package("startools")
        ledger.save(cfg.ledger_file)

        setup(path)
        assert "startools" not in Repository.load(cfg.ledger_file)

    def test_writes_default_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            Config, "default_for_platform",
            classmethod(lambda cls: cls(
                repositories=["https://d.example.com"],
                storage_dir=str(tmp_path / "s"),
                tmp_dir=str(tmp_path / "t"),
            )),
        )
        path = tmp_path / "new" / "config.yml"
        cfg = setup(path)
        assert path.exists()
        assert yaml.safe_load(path.read_text(encoding="utf-8"))["repositories"] == [
            "https://d.example.com",
        ]
        assert cfg.ledger_file.exists()

    def test_uses_env_path(self, tmp_path: Path) -> None:
        _config_file(tmp_path)
        cfg = setup()
        assert cfg.storage_dir == str(tmp_path / "storage")

    def test_malformed_config_not_overwritten(self, tmp_path: Path) -> None:
        path = tmp_path / "etc" / "config.yml"
        path.parent.mkdir(parents=True)
        path.write_text("repositories: []\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            setup(path)
        assert path.read_text(encoding="utf-8") == "repositories: []\n"


class TestCheckPermissions:
    def test_writable(self, config: Config) -> None:
        assert check_permissions(config)

    def test_missing_dir(self, config: Config, tmp_path: Path) -> None:
        config.tmp_dir = str(tmp_path / "absent")
        assert not check_permissions(config)

    @pytest.mark.skipif(os.geteuid() == 0, reason="root 忽略目录权限位")
    def test_read_only(self, config: Config) -> None:
        os.chmod(config.storage_dir, 0o500)
        try:
            assert not check_permissions(config)
        finally:
            os.chmod(config.storage_dir, 0o700)
