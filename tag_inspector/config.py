"""
tag_inspector/config.py - 중앙 설정 관리

환경 변수 기반 설정과 로깅 설정을 정의합니다.

Usage:
    from tag_inspector.config import settings, get_default_region, LogConfig

    region = get_default_region()  # "ap-northeast-2"
    log_config = LogConfig.from_env()
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version

# 환경 변수 접두사
ENV_PREFIX = "TAG_INSPECTOR_"


@dataclass(frozen=True)
class Settings:
    """불변 전역 설정

    Attributes:
        DEFAULT_REGION: 리전 정보가 없을 때 사용할 기본 리전
        DEFAULT_PARTITION: ARN 생성 시 기본 파티션
        EXCLUSION_PARAMETER_NAME: 제외 정책을 담은 SSM 파라미터 이름
    """

    DEFAULT_REGION: str = "ap-northeast-2"
    DEFAULT_PARTITION: str = "aws"
    EXCLUSION_PARAMETER_NAME: str = "/tag-inspector/exclusions"


settings = Settings()


# =============================================================================
# 환경 변수 헬퍼
# =============================================================================


def get_default_region() -> str:
    """AWS_REGION > AWS_DEFAULT_REGION > settings.DEFAULT_REGION 순으로 리전 결정"""
    return os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION") or settings.DEFAULT_REGION


def get_exclusion_parameter_name() -> str:
    """제외 정책 SSM 파라미터 이름 (환경 변수로 재정의 가능)"""
    return os.environ.get(f"{ENV_PREFIX}EXCLUSION_PARAMETER") or settings.EXCLUSION_PARAMETER_NAME


def get_version() -> str:
    """설치된 패키지 버전 반환"""
    try:
        return version("aws-tag-inspector")
    except PackageNotFoundError:
        from . import __version__

        return __version__


# =============================================================================
# 로깅 설정
# =============================================================================


@dataclass(frozen=True)
class LogConfig:
    """로깅 설정

    Attributes:
        level: 로그 레벨 이름
        format: 로그 메시지 포맷
        date_format: 시간 포맷
    """

    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @classmethod
    def from_env(cls) -> LogConfig:
        """TAG_INSPECTOR_LOG_LEVEL / TAG_INSPECTOR_LOG_FORMAT 환경 변수로 생성"""
        defaults = cls()
        return cls(
            level=os.environ.get(f"{ENV_PREFIX}LOG_LEVEL", defaults.level).upper(),
            format=os.environ.get(f"{ENV_PREFIX}LOG_FORMAT", defaults.format),
            date_format=defaults.date_format,
        )
