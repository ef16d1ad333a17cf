import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

# rate_ctx：当前报价请求的上下文（目的地 / 距离策略 / 价格表模式），不在请求内时为 "-"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(rate_ctx)s | %(message)s"
DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_rate_ctx: ContextVar[str] = ContextVar("rate_ctx", default="-")


class RateContextFilter(logging.Filter):
    """把当前报价上下文挂到每条日志记录上（rate_ctx 字段）。"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.rate_ctx = _rate_ctx.get()
        return True


@contextmanager
def rate_log_context(**fields: object) -> Iterator[str]:
    """
    with rate_log_context(dest="H3B 4W8", strategy="routing"):
        ...   # 期间所有日志带上 dest=H3B 4W8 strategy=routing
    None 值跳过；退出时恢复外层上下文。
    """
    value = " ".join(f"{k}={v}" for k, v in fields.items() if v is not None) or "-"
    token = _rate_ctx.set(value)
    try:
        yield value
    finally:
        _rate_ctx.reset(token)


def current_rate_context() -> str:
    return _rate_ctx.get()


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Root logger 上挂 handler + RateContextFilter，报价相关日志都能带上请求上下文。
    uvicorn 会先配好自己的 handler，脚本一般没有。
    """
    resolved_level = (level or DEFAULT_LEVEL).upper()
    root_logger = logging.getLogger()

    if not root_logger.handlers:
        logging.basicConfig(
            level=resolved_level,
            format=LOG_FORMAT,
            handlers=[logging.StreamHandler(sys.stdout)],
        )
    else:
        root_logger.setLevel(resolved_level)

    for handler in root_logger.handlers:
        if not any(isinstance(f, RateContextFilter) for f in handler.filters):
            handler.addFilter(RateContextFilter())

    logging.captureWarnings(True)
    return logging.getLogger("freight_rate")
