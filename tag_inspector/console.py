"""
tag_inspector/console.py - Rich 로깅 유틸리티

라이브러리 모듈은 logging.getLogger(__name__)만 사용하고,
핸들러 구성은 이 모듈을 통해 애플리케이션 진입점에서 수행합니다.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

from .config import LogConfig

# botocore 노이즈 로그 제한
logging.getLogger("botocore.credentials").setLevel(logging.WARNING)
logging.getLogger("botocore.loaders").setLevel(logging.WARNING)
logging.getLogger("botocore.session").setLevel(logging.WARNING)


def get_console(stderr: bool = True) -> Console:
    """로그 출력용 Rich Console 생성"""
    return Console(stderr=stderr, soft_wrap=True, highlight=False)


def get_logger(
    name: str = "tag_inspector",
    config: LogConfig | None = None,
    console: Console | None = None,
) -> logging.Logger:
    """Rich 핸들러가 설정된 logger를 반환합니다.

    Args:
        name: logger 이름 (기본값: 패키지 루트 logger)
        config: 로깅 설정 (None이면 환경 변수 기반)
        console: 출력 대상 Console

    Returns:
        logging.Logger: 설정된 logger 인스턴스
    """
    logger = logging.getLogger(name)

    # 이미 핸들러가 설정되어 있으면 반환
    if any(isinstance(h, RichHandler) for h in logger.handlers):
        return logger

    config = config or LogConfig.from_env()
    logger.setLevel(getattr(logging, config.level, logging.INFO))

    handler = RichHandler(console=console or get_console(), rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt=config.date_format))
    logger.addHandler(handler)

    return logger


def configure_plain_logging(config: LogConfig | None = None) -> None:
    """Rich 없이 표준 포맷으로 루트 로깅 구성 (CI/배치 실행용)"""
    config = config or LogConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.level, logging.INFO),
        format=config.format,
        datefmt=config.date_format,
    )
