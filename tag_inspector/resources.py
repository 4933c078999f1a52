"""
tag_inspector/resources.py - 리소스 추상화

평가기가 리소스 종류(S3 버킷, EC2 인스턴스 등)와 무관하게 동작하도록
공통 기능 집합(TaggedResource Protocol)과 기본 구현(AWSResource)을 제공합니다.

모든 리소스 종류는 동일한 필드 구성(식별 정보 + 태그 + 메타데이터)을 공유하며,
종류별 차이는 ARN 형식 같은 데이터(ResourceKind)로만 표현합니다.
리소스 수집(discovery)은 범위 밖이며, 이미 디코딩된 응답 데이터를 변환만 합니다.

Usage:
    from tag_inspector.resources import create_resource, resource_from_tagging_api

    bucket = create_resource("s3:bucket", "my-bucket", region="ap-northeast-2", tags={"env": "prod"})

    # ResourceGroupsTaggingAPI get_resources 응답 항목
    item = {
        "ResourceARN": "arn:aws:ec2:ap-northeast-2:123456789012:instance/i-0abc",
        "Tags": [{"Key": "Name", "Value": "web"}],
    }
    instance = resource_from_tagging_api(item)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .config import settings
from .evaluator import evaluate, validate
from .exceptions import ValidationError
from .types import AccountId, Arn, Metadata, RegionName, ResourceId, ResourceType, TagKey, Tags, TagValue, parse_arn

if TYPE_CHECKING:
    from .criteria import ComplianceLevel, TagCriteria
    from .exclusions import ExclusionPolicy
    from .scanner import ScanResult


def normalize_tags(tags: Tags | Iterable[Mapping[str, str]] | None) -> dict[str, str]:
    """태그를 {key: value} 딕셔너리로 변환

    매핑은 그대로 복사하고, 그 외 iterable은 AWS API 형식
    [{"Key": ..., "Value": ...}] 으로 처리합니다 (list, tuple, 페이지네이터 generator 등).

    Raises:
        ValidationError: 매핑도 Key/Value 항목 iterable도 아닌 경우
    """
    if tags is None:
        return {}

    if isinstance(tags, Mapping):
        return dict(tags)

    if isinstance(tags, (str, bytes)) or not isinstance(tags, Iterable):
        raise ValidationError(field="tags", value=tags, expected='dict 또는 [{"Key": ..., "Value": ...}]')

    normalized: dict[str, str] = {}
    for item in tags:
        if not isinstance(item, Mapping):
            raise ValidationError(field="tags", value=item, expected='{"Key": ..., "Value": ...}')
        if "Key" in item:
            normalized[item["Key"]] = item.get("Value", "")
    return normalized


# =============================================================================
# 리소스 Protocol
# =============================================================================


@runtime_checkable
class TaggedResource(Protocol):
    """평가 대상 리소스가 제공해야 하는 기능 집합"""

    # 식별 정보
    def get_resource_type(self) -> ResourceType: ...

    def get_resource_id(self) -> ResourceId: ...

    def get_arn(self) -> Arn: ...

    def get_region(self) -> RegionName: ...

    # 태그 조회
    def get_tags(self) -> Tags: ...

    def has_tags(self) -> bool: ...

    def has_tag(self, key: TagKey) -> bool: ...

    def get_tag_value(self, key: TagKey) -> tuple[TagValue, bool]: ...

    # 메타데이터
    def get_metadata(self) -> Metadata: ...

    # 스캔
    def scan_tags(
        self, criteria: TagCriteria, compliance_levels: Mapping[str, ComplianceLevel] | None = None
    ) -> list[str]: ...

    def validate_compliance(
        self, criteria: TagCriteria, compliance_levels: Mapping[str, ComplianceLevel] | None = None
    ) -> bool: ...

    def scan(
        self, criteria: TagCriteria, compliance_levels: Mapping[str, ComplianceLevel] | None = None
    ) -> ScanResult: ...

    def is_excluded(self, policy: ExclusionPolicy) -> tuple[bool, str]: ...


# =============================================================================
# 기본 구현
# =============================================================================


@dataclass(frozen=True)
class AWSResource:
    """모든 리소스 종류가 공유하는 불변 리소스 구현

    tags/metadata는 생성 시점에 복사되어 읽기 전용 매핑으로 보관되므로
    호출자가 원본 딕셔너리를 바꿔도 스캔 결과에 영향을 주지 않습니다.

    Attributes:
        resource_type: 네임스페이스 리소스 타입 (예: ec2:instance)
        resource_id: 리소스 ID
        arn: ARN
        region: 리전
        tags: 태그 (None 또는 AWS API 리스트 형식 허용)
        metadata: 태그로 표현되지 않는 리소스별 추가 정보
    """

    resource_type: ResourceType
    resource_id: ResourceId
    arn: Arn = ""
    region: RegionName = ""
    tags: Tags = field(default_factory=dict)
    metadata: Metadata = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", MappingProxyType(normalize_tags(self.tags)))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata or {})))

    def get_resource_type(self) -> ResourceType:
        return self.resource_type

    def get_resource_id(self) -> ResourceId:
        return self.resource_id

    def get_arn(self) -> Arn:
        return self.arn

    def get_region(self) -> RegionName:
        return self.region

    def get_tags(self) -> Tags:
        return self.tags

    def has_tags(self) -> bool:
        return len(self.get_tags()) > 0

    def has_tag(self, key: TagKey) -> bool:
        return key in self.get_tags()

    def get_tag_value(self, key: TagKey) -> tuple[TagValue, bool]:
        """(값, 존재 여부) 반환. 없으면 ("", False)"""
        tags = self.get_tags()
        if key not in tags:
            return "", False
        return tags[key], True

    def get_metadata(self) -> Metadata:
        return self.metadata

    def scan_tags(
        self, criteria: TagCriteria, compliance_levels: Mapping[str, ComplianceLevel] | None = None
    ) -> list[str]:
        """이 리소스의 태그를 기준에 대해 평가"""
        return evaluate(self.get_tags(), criteria, compliance_levels)

    def validate_compliance(
        self, criteria: TagCriteria, compliance_levels: Mapping[str, ComplianceLevel] | None = None
    ) -> bool:
        return validate(self.get_tags(), criteria, compliance_levels)

    def scan(
        self, criteria: TagCriteria, compliance_levels: Mapping[str, ComplianceLevel] | None = None
    ) -> ScanResult:
        """평가 결과를 ScanResult로 반환 (제외 정책은 확인하지 않음)"""
        from .scanner import build_scan_result

        return build_scan_result(self, self.scan_tags(criteria, compliance_levels))

    def is_excluded(self, policy: ExclusionPolicy) -> tuple[bool, str]:
        return policy.is_excluded(self.resource_type, self.resource_id)


# =============================================================================
# 리소스 종류
# =============================================================================


@dataclass(frozen=True)
class ResourceKind:
    """리소스 종류별 ARN 형식

    Attributes:
        resource_type: 네임스페이스 리소스 타입
        arn_format: ARN 템플릿 ({partition}, {region}, {account_id}, {resource_id})
        regional: ARN에 리전/계정이 포함되는지 여부
    """

    resource_type: ResourceType
    arn_format: str
    regional: bool = True

    def build_arn(
        self,
        resource_id: ResourceId,
        region: RegionName = "",
        account_id: AccountId = "",
        partition: str = "",
    ) -> Arn:
        return self.arn_format.format(
            partition=partition or settings.DEFAULT_PARTITION,
            region=region if self.regional else "",
            account_id=account_id if self.regional else "",
            resource_id=resource_id,
        )


def _kind(resource_type: str, resource_part: str, regional: bool = True) -> ResourceKind:
    service = resource_type.split(":", 1)[0]
    return ResourceKind(
        resource_type=resource_type,
        arn_format=f"arn:{{partition}}:{service}:{{region}}:{{account_id}}:{resource_part}",
        regional=regional,
    )


RESOURCE_KINDS: Mapping[str, ResourceKind] = MappingProxyType(
    {
        kind.resource_type: kind
        for kind in (
            # Storage
            _kind("s3:bucket", "{resource_id}", regional=False),
            # Compute (EC2)
            _kind("ec2:instance", "instance/{resource_id}"),
            _kind("ec2:volume", "volume/{resource_id}"),
            _kind("ec2:snapshot", "snapshot/{resource_id}"),
            _kind("ec2:security-group", "security-group/{resource_id}"),
            _kind("ec2:vpc", "vpc/{resource_id}"),
            _kind("ec2:subnet", "subnet/{resource_id}"),
            # Database
            _kind("rds:db", "db:{resource_id}"),
            _kind("rds:cluster", "cluster:{resource_id}"),
            _kind("dynamodb:table", "table/{resource_id}"),
            # Serverless / Messaging
            _kind("lambda:function", "function:{resource_id}"),
            _kind("sqs:queue", "{resource_id}"),
            _kind("sns:topic", "{resource_id}"),
            # Security / Monitoring
            _kind("kms:key", "key/{resource_id}"),
            _kind("logs:log-group", "log-group:{resource_id}"),
            # Networking
            _kind("elasticloadbalancing:loadbalancer", "loadbalancer/{resource_id}"),
        )
    }
)


def create_resource(
    resource_type: ResourceType,
    resource_id: ResourceId,
    region: RegionName = "",
    account_id: AccountId = "",
    tags: Tags | Iterable[Mapping[str, str]] | None = None,
    metadata: Metadata | None = None,
    partition: str = "",
) -> AWSResource:
    """알려진 리소스 종류의 AWSResource 생성 (ARN 자동 구성)

    Raises:
        ValidationError: 등록되지 않은 리소스 타입인 경우
    """
    kind = RESOURCE_KINDS.get(resource_type)
    if kind is None:
        raise ValidationError(
            field="resource_type",
            value=resource_type,
            expected=", ".join(sorted(RESOURCE_KINDS)),
        )

    return AWSResource(
        resource_type=resource_type,
        resource_id=resource_id,
        arn=kind.build_arn(resource_id, region=region, account_id=account_id, partition=partition),
        region=region,
        tags=tags,
        metadata=metadata,
    )


def resource_from_arn(
    arn: Arn,
    tags: Tags | Iterable[Mapping[str, str]] | None = None,
    metadata: Metadata | None = None,
    region: RegionName = "",
) -> AWSResource:
    """ARN에서 타입/ID/리전을 추출하여 AWSResource 생성

    ARN에 리전이 없는 글로벌 리소스(S3 등)는 region 인자를 사용합니다.
    """
    parts = parse_arn(arn)
    return AWSResource(
        resource_type=parts.resource_type,
        resource_id=parts.resource_id,
        arn=arn,
        region=parts.region or region,
        tags=tags,
        metadata=metadata,
    )


def resource_from_tagging_api(item: Mapping[str, Any], region: RegionName = "") -> AWSResource:
    """ResourceGroupsTaggingAPI ResourceTagMappingList 항목을 AWSResource로 변환

    Args:
        item: {"ResourceARN": ..., "Tags": [{"Key": ..., "Value": ...}], ...}
        region: ARN에 리전이 없을 때 사용할 리전

    Raises:
        ValidationError: ResourceARN이 없거나 형식이 잘못된 경우
    """
    arn = item.get("ResourceARN")
    if not arn:
        raise ValidationError(field="ResourceARN", value=arn, expected="ARN")

    metadata = {}
    compliance = item.get("ComplianceDetails")
    if compliance:
        metadata["compliance_details"] = dict(compliance)

    return resource_from_arn(arn, tags=item.get("Tags"), metadata=metadata, region=region)
