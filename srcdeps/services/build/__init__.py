"""构建服务模块

- adapters.py: 构建系统适配器 (cmake / make / meson)
- cache.py: 构建指纹缓存文件
"""

from srcdeps.services.build.adapters import BuildAdapter, get_adapter
from srcdeps.services.build.cache import FingerprintCache

__all__ = ["BuildAdapter", "FingerprintCache", "get_adapter"]
