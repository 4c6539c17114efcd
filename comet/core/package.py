"""包清单数据模型 (info.yml)

清单字段:
  name, description, version, dependencies (包名 -> 最低版本),
  authors, license, checksum (可选, 小写十六进制 SHA-256)

同名包之间按版本比较；不同名的包没有顺序关系。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from comet.core.exceptions import FormatError
from comet.core.semver import SemVer
from comet.utils.yaml_io import dump_yaml, parse_yaml

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("name", "version")


@dataclass(eq=False)
class Package:
    """单个包的清单"""

    name: str
    version: str
    description: str = ""
    dependencies: dict[str, str] = field(default_factory=dict)
    authors: list[str] = field(default_factory=list)
    license: str = ""
    checksum: str | None = None

    # ------------------------------------------------------------------
    # 序列化
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Any) -> Package:
        if not isinstance(data, dict):
            raise FormatError(f"包清单必须是映射类型, 实际: {type(data).__name__}")
        missing = [k for k in _REQUIRED_FIELDS if not data.get(k)]
        if missing:
            raise FormatError(f"包清单缺少字段: {', '.join(missing)}")

        deps = data.get("dependencies") or {}
        if not isinstance(deps, dict):
            raise FormatError(f"包 {data['name']} 的 dependencies 必须是映射")
        authors = data.get("authors") or []
        if not isinstance(authors, list):
            raise FormatError(f"包 {data['name']} 的 authors 必须是列表")

        version = str(data["version"])
        SemVer.parse(version)

        checksum = data.get("checksum")
        return cls(
            name=str(data["name"]),
            version=version,
            description=str(data.get("description") or ""),
            dependencies={str(k): str(v) for k, v in deps.items()},
            authors=[str(a) for a in authors],
            license=str(data.get("license") or ""),
            checksum=str(checksum).lower() if checksum else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "dependencies": dict(self.dependencies),
            "authors": list(self.authors),
            "license": self.license,
            "checksum": self.checksum,
        }

    @classmethod
    def from_string(cls, text: str) -> Package:
        try:
            data = parse_yaml(text)
        except yaml.YAMLError as e:
            raise FormatError(f"包清单 YAML 格式错误: {e}") from e
        return cls.from_dict(data)

    def to_string(self) -> str:
        return dump_yaml(self.to_dict())

    @classmethod
    def from_file(cls, path: str | Path) -> Package:
        p = Path(path)
        try:
            text = p.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FormatError(f"无法读取包清单 {p}: {e}") from e
        return cls.from_string(text)

    # ------------------------------------------------------------------
    # 版本比较
    # ------------------------------------------------------------------

    @property
    def semver(self) -> SemVer:
        return SemVer.parse(self.version)

    def compare(self, other: Package) -> int | None:
        """同名包返回 -1 / 0 / 1，不同名返回 None"""
        if self.name != other.name:
            return None
        return self.semver.compare(other.semver)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Package):
            return NotImplemented
        return self.compare(other) == 0

    def __hash__(self) -> int:
        return hash((self.name, self.version))

    def _ordered(self, other: Package) -> int:
        result = self.compare(other)
        if result is None:
            raise TypeError(f"不同名的包无法比较: {self.name} / {other.name}")
        return result

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Package):
            return NotImplemented
        return self._ordered(other) < 0

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Package):
            return NotImplemented
        return self._ordered(other) <= 0

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Package):
            return NotImplemented
        return self._ordered(other) > 0

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Package):
            return NotImplemented
        return self._ordered(other) >= 0

    # ------------------------------------------------------------------
    # 展示
    # ------------------------------------------------------------------

    def details(self) -> str:
        """包详情文本（info 命令输出）"""
        return f"{self.name} - {self.version}\n\n{self.description}\n{self.license}"
