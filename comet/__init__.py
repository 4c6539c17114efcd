"""comet - 简单的包管理器

安装、删除、更新以 .star 归档分发的软件包，
维护已安装账本 (repo.yml) 与可用包缓存 (cache.yml)。
"""

__version__ = "1.0.0"
