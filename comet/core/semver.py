"""语义化版本 major.minor.patch-suffix

序列化格式固定为 `<int>.<int>.<int>-<suffix>`，suffix 可以为空，
但分隔符 `-` 必须存在（如 `1.2.0-`）。

排序规则:
  1. 依次比较 major / minor / patch
  2. 三者相同时，带 suffix 的预发布版本排在无 suffix 的正式版本之前
  3. 两者都有 suffix 时按字典序比较
"""

from __future__ import annotations

import functools
from dataclasses import dataclass

from comet.core.exceptions import FormatError


def _parse_int(segment: str, field: str, raw: str) -> int:
    # int() 会接受 "+1"、" 1"、"1_0"，这里只允许纯十进制数字
    if not segment.isdigit() or not segment.isascii():
        raise FormatError(f"版本号 {field} 不是十进制整数: {raw!r}")
    return int(segment)


@functools.total_ordering
@dataclass(frozen=True)
class SemVer:
    major: int
    minor: int
    patch: int
    suffix: str = ""

    @classmethod
    def parse(cls, version: str) -> SemVer:
        """解析版本字符串，格式不合法时抛 FormatError"""
        if not isinstance(version, str):
            raise FormatError(f"版本号必须是字符串: {version!r}")
        parts = version.split(".", 2)
        if len(parts) != 3:
            raise FormatError(f"版本号缺少 major.minor.patch: {version!r}")
        major_s, minor_s, rest = parts
        if "-" not in rest:
            raise FormatError(f"版本号缺少 '-' 分隔符: {version!r}")
        patch_s, suffix = rest.split("-", 1)
        return cls(
            major=_parse_int(major_s, "major", version),
            minor=_parse_int(minor_s, "minor", version),
            patch=_parse_int(patch_s, "patch", version),
            suffix=suffix,
        )

    def compare(self, other: SemVer) -> int:
        """返回 -1 / 0 / 1"""
        mine = (self.major, self.minor, self.patch)
        theirs = (other.major, other.minor, other.patch)
        if mine != theirs:
            return -1 if mine < theirs else 1
        if self.suffix == other.suffix:
            return 0
        if not self.suffix:
            return 1
        if not other.suffix:
            return -1
        return -1 if self.suffix < other.suffix else 1

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self.compare(other) < 0

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}-{self.suffix}"


def parse(version: str) -> SemVer:
    return SemVer.parse(version)


def compare(a: SemVer, b: SemVer) -> int:
    return a.compare(b)


def format_version(v: SemVer) -> str:
    return str(v)


def is_at_least(version: str, minimum: str) -> bool:
    """version >= minimum（两者均为版本字符串）"""
    return SemVer.parse(version) >= SemVer.parse(minimum)
