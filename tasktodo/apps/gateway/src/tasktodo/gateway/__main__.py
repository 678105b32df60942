"""Gateway 启动入口 -- python -m tasktodo.gateway"""

import uvicorn

from .config import load_gateway_config


def main() -> None:
    config = load_gateway_config()
    uvicorn.run(
        "tasktodo.gateway.main:app",
        host=config.host,
        port=config.port,
        log_config=None,  # 日志统一交给 structlog
    )


if __name__ == "__main__":
    main()
