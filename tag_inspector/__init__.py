"""
tag_inspector - AWS 리소스 태그 컴플라이언스 평가 엔진

리소스 식별 정보와 태그를 받아 태그 정책 준수 여부를 판단하고
기계가 읽을 수 있는 위반 목록을 생성합니다.

아키텍처:
    tag_inspector/
    ├── types.py        # 식별자 별칭, ARN 파싱
    ├── exceptions.py   # 통합 예외 계층
    ├── config.py       # 환경 변수 설정, 로깅 설정
    ├── console.py      # Rich 로깅 핸들러
    ├── resources.py    # 리소스 Protocol 및 기본 구현
    ├── criteria.py     # TagCriteria, ComplianceLevel, 레지스트리
    ├── evaluator.py    # 태그 평가기 (evaluate / validate)
    ├── exclusions.py   # 스캔 제외 정책
    └── scanner.py      # ScanResult, 스캔 흐름

Usage:
    from tag_inspector import TagCriteria, create_resource, scan_resource

    resource = create_resource("ec2:instance", "i-0abc", region="ap-northeast-2",
                               account_id="123456789012", tags={"env": "prod"})
    result = scan_resource(resource, TagCriteria(required_tags={"env", "owner"}))
    result.issues  # ("missing required tag: owner",)
"""

__version__ = "0.1.0"

from .criteria import ComplianceLevel, ComplianceLevelRegistry, TagCriteria
from .evaluator import evaluate, validate
from .exceptions import (
    APICallError,
    ConfigError,
    ExclusionLookupError,
    TagInspectorError,
    ValidationError,
)
from .exclusions import ExclusionPolicy, ExclusionRule, SSMExclusionPolicy, StaticExclusionPolicy
from .resources import (
    AWSResource,
    TaggedResource,
    create_resource,
    resource_from_arn,
    resource_from_tagging_api,
)
from .scanner import ExcludedResource, ScanReport, ScanResult, check_exclusion, scan_resource, scan_resources

__all__ = [
    "__version__",
    # criteria
    "ComplianceLevel",
    "ComplianceLevelRegistry",
    "TagCriteria",
    # evaluator
    "evaluate",
    "validate",
    # exceptions
    "TagInspectorError",
    "ConfigError",
    "ValidationError",
    "APICallError",
    "ExclusionLookupError",
    # exclusions
    "ExclusionPolicy",
    "ExclusionRule",
    "StaticExclusionPolicy",
    "SSMExclusionPolicy",
    # resources
    "AWSResource",
    "TaggedResource",
    "create_resource",
    "resource_from_arn",
    "resource_from_tagging_api",
    # scanner
    "ScanResult",
    "ScanReport",
    "ExcludedResource",
    "check_exclusion",
    "scan_resource",
    "scan_resources",
]
