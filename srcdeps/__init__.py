"""srcdeps - 源码依赖拉取与构建编排工具"""

__version__ = "0.1.0"
