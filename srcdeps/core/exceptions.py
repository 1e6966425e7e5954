"""统一异常体系

所有业务异常继承 SrcDepsError，替代散落的 ValueError / RuntimeError。
CLI 层据此输出友好提示，并为 ProcessFailure 透传子进程退出码。
"""

from __future__ import annotations


class SrcDepsError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(SrcDepsError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class PreconditionError(SrcDepsError):
    """调用参数组合非法（如 capture_output 与 background 同时开启）"""

    code = "PRECONDITION_VIOLATION"


class FormatError(SrcDepsError):
    """依赖声明格式错误"""

    code = "FORMAT_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class ResolutionError(SrcDepsError):
    """无法解析出可检出的 refspec / commit"""

    code = "RESOLUTION_ERROR"


class ProcessFailure(SrcDepsError):
    """阻塞命令非零退出或被信号终止"""

    code = "PROCESS_FAILURE"

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        signal: int | None = None,
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.signal = signal


class UnsupportedBuildSystemError(SrcDepsError):
    """未知的构建系统"""

    code = "UNSUPPORTED_BUILD_SYSTEM"
