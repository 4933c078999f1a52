"""
tag_inspector/types.py - 타입 별칭 및 ARN 유틸리티

리소스 식별자와 태그에 대한 별칭, ARN 검증/파싱 함수를 정의합니다.

Usage:
    from tag_inspector.types import parse_arn

    parts = parse_arn("arn:aws:ec2:ap-northeast-2:123456789012:instance/i-0abc")
    parts.resource_type  # "ec2:instance"
    parts.resource_id    # "i-0abc"
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NewType, TypeAlias

from .exceptions import ValidationError

# =============================================================================
# AWS 식별자 타입
# =============================================================================

# 계정 식별자 (12자리 숫자 문자열)
AccountId = NewType("AccountId", str)

# 리전 이름 (예: ap-northeast-2)
RegionName = NewType("RegionName", str)

# 네임스페이스 리소스 타입 (예: ec2:instance, s3:bucket)
ResourceType = NewType("ResourceType", str)

# 리소스 ID (타입 + 리전 내에서 고유)
ResourceId = NewType("ResourceId", str)

# ARN (Amazon Resource Name)
Arn = NewType("Arn", str)

# =============================================================================
# 태그/메타데이터 타입
# =============================================================================

TagKey = NewType("TagKey", str)
TagValue = NewType("TagValue", str)

# 리소스에 붙은 태그 (읽기 전용으로 다룸)
Tags: TypeAlias = Mapping[str, str]

# 태그로 표현되지 않는 리소스별 추가 정보
Metadata: TypeAlias = Mapping[str, Any]

# ARN에 리소스 타입 접두사가 없는 서비스의 기본 타입
_SERVICE_DEFAULT_RESOURCE = {
    "s3": "bucket",
    "sqs": "queue",
    "sns": "topic",
}


@dataclass(frozen=True)
class ArnParts:
    """파싱된 ARN 구성 요소

    Attributes:
        partition: 파티션 (aws, aws-cn, aws-us-gov)
        service: 서비스 네임스페이스 (ec2, s3 등)
        region: 리전 (글로벌 리소스는 빈 문자열)
        account_id: 계정 ID (S3 등은 빈 문자열)
        resource: ARN의 리소스 부분 원문
        resource_type: 네임스페이스 리소스 타입 (예: ec2:instance)
        resource_id: 리소스 ID
    """

    partition: str
    service: str
    region: RegionName
    account_id: AccountId
    resource: str
    resource_type: ResourceType
    resource_id: ResourceId


def is_valid_account_id(value: str) -> bool:
    """계정 ID 유효성 검사 (12자리 숫자)"""
    return len(value) == 12 and value.isdigit()


def is_valid_region(value: str) -> bool:
    """리전 이름 유효성 검사 (기본 패턴)"""
    pattern = r"^[a-z]{2}(-[a-z]+)+-\d+$"
    return bool(re.match(pattern, value))


def is_valid_arn(value: str) -> bool:
    """ARN 유효성 검사"""
    return (value.startswith("arn:aws:") or value.startswith("arn:aws-")) and value.count(":") >= 5


def parse_arn(arn: Arn | str) -> ArnParts:
    """ARN을 구성 요소로 분해

    리소스 부분은 "type/id", "type:id", "id" 세 가지 형식을 처리합니다.
    Lambda 버전, 로그 그룹의 ":*" 같은 접미사는 ID에서 제거합니다.
    S3/SQS/SNS는 항상 기본 타입(bucket/queue/topic)으로 해석합니다.

    Args:
        arn: 파싱할 ARN

    Returns:
        ArnParts

    Raises:
        ValidationError: ARN 형식이 아닌 경우
    """
    if not is_valid_arn(arn):
        raise ValidationError(field="arn", value=arn, expected="arn:partition:service:region:account:resource")

    _, partition, service, region, account_id, resource = arn.split(":", 5)

    if service in _SERVICE_DEFAULT_RESOURCE:
        # 타입 접두사 없는 서비스: bucket/key, topic:subscription-id 등은 상위 리소스로 귀속
        kind = _SERVICE_DEFAULT_RESOURCE[service]
        resource_id = re.split(r"[:/]", resource, maxsplit=1)[0]
    elif "/" in resource and (":" not in resource or resource.index("/") < resource.index(":")):
        kind, _, resource_id = resource.partition("/")
    elif ":" in resource:
        kind, _, resource_id = resource.partition(":")
        # function:name:version, log-group:name:* 형식
        resource_id = resource_id.split(":", 1)[0]
    else:
        kind = ""
        resource_id = resource

    if not kind or not resource_id:
        raise ValidationError(field="arn", value=arn, expected="리소스 타입이 포함된 ARN")

    return ArnParts(
        partition=partition,
        service=service,
        region=RegionName(region),
        account_id=AccountId(account_id),
        resource=resource,
        resource_type=ResourceType(f"{service}:{kind}"),
        resource_id=ResourceId(resource_id),
    )
