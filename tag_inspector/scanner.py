"""
tag_inspector/scanner.py - 리소스 스캔 및 결과 레코드

제외 정책 확인 -> 태그 평가 -> ScanResult 생성의 흐름을 묶습니다.

여러 리소스를 병렬로 스캔하는 것은 호출자의 몫입니다. scan_resource는
공유 상태가 없으므로 리소스마다 독립된 스레드/태스크에서 호출할 수 있습니다.
scan_resources는 순차 실행 편의 함수입니다.

Usage:
    from tag_inspector.scanner import scan_resource, scan_resources

    result = scan_resource(resource, criteria, levels, exclusion_policy=policy)
    if result is None:
        ...  # 제외됨

    report = scan_resources(resources, criteria, levels, exclusion_policy=policy)
    print(report.compliant_count, report.non_compliant_count)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .types import Arn, Metadata, RegionName, ResourceId, ResourceType, Tags

if TYPE_CHECKING:
    from .criteria import ComplianceLevel, TagCriteria
    from .exclusions import ExclusionPolicy
    from .resources import TaggedResource

logger = logging.getLogger(__name__)

# 준수 상태 라벨
COMPLIANCE_TAG_COMPLIANT = "compliant"
COMPLIANCE_TAG_NON_COMPLIANT = "non-compliant"


@dataclass(frozen=True)
class ScanResult:
    """리소스 하나의 스캔 결과

    issues가 비어 있으면 준수, 아니면 미준수입니다.

    Attributes:
        resource_type: 리소스 타입
        resource_id: 리소스 ID
        arn: ARN
        region: 리전
        tags: 스캔 시점의 태그 스냅샷
        issues: 위반 목록 (평가 순서 유지)
        metadata: 스캔 시점의 메타데이터 스냅샷
        compliance_tag: 준수 상태 라벨 (빈 문자열이면 생략)
    """

    resource_type: ResourceType
    resource_id: ResourceId
    arn: Arn
    region: RegionName
    tags: Tags = field(default_factory=dict)
    issues: tuple[str, ...] = ()
    metadata: Metadata = field(default_factory=dict)
    compliance_tag: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags or {})))
        object.__setattr__(self, "issues", tuple(self.issues or ()))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata or {})))

    @property
    def is_compliant(self) -> bool:
        return not self.issues

    @property
    def issue_count(self) -> int:
        return len(self.issues)

    def to_dict(self) -> dict[str, Any]:
        """직렬화 형식으로 변환 (metadata/compliance_tag는 비어 있으면 생략)"""
        data: dict[str, Any] = {
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "arn": self.arn,
            "region": self.region,
            "tags": dict(self.tags),
            "issues": list(self.issues),
        }
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        if self.compliance_tag:
            data["compliance_tag"] = self.compliance_tag
        return data


@dataclass(frozen=True)
class ExcludedResource:
    """제외 정책에 의해 스캔되지 않은 리소스"""

    resource_type: ResourceType
    resource_id: ResourceId
    arn: Arn
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "arn": self.arn,
            "reason": self.reason,
        }


def build_scan_result(resource: TaggedResource, issues: Iterable[str]) -> ScanResult:
    """위반 목록과 리소스 식별 정보로 ScanResult 생성"""
    issues = tuple(issues)
    return ScanResult(
        resource_type=resource.get_resource_type(),
        resource_id=resource.get_resource_id(),
        arn=resource.get_arn(),
        region=resource.get_region(),
        tags=resource.get_tags(),
        issues=issues,
        metadata=resource.get_metadata(),
        compliance_tag=COMPLIANCE_TAG_NON_COMPLIANT if issues else COMPLIANCE_TAG_COMPLIANT,
    )


def check_exclusion(
    resource: TaggedResource,
    exclusion_policy: ExclusionPolicy | None,
) -> ExcludedResource | None:
    """제외 정책을 한 번 조회하여 제외된 경우 ExcludedResource 반환

    Raises:
        ExclusionLookupError: 제외 정책이 설정 소스를 조회하지 못한 경우
    """
    if exclusion_policy is None:
        return None

    excluded, reason = resource.is_excluded(exclusion_policy)
    if not excluded:
        return None

    logger.info(
        "스캔 제외: %s/%s (%s)",
        resource.get_resource_type(),
        resource.get_resource_id(),
        reason,
    )
    return ExcludedResource(
        resource_type=resource.get_resource_type(),
        resource_id=resource.get_resource_id(),
        arn=resource.get_arn(),
        reason=reason,
    )


def scan_resource(
    resource: TaggedResource,
    criteria: TagCriteria,
    compliance_levels: Mapping[str, ComplianceLevel] | None = None,
    exclusion_policy: ExclusionPolicy | None = None,
) -> ScanResult | None:
    """리소스 하나를 스캔

    Args:
        resource: 스캔 대상
        criteria: 검사 기준
        compliance_levels: 컴플라이언스 레벨 레지스트리
        exclusion_policy: 제외 정책 (None이면 제외 확인 안 함)

    Returns:
        ScanResult, 제외된 경우 None

    Raises:
        ExclusionLookupError: 제외 정책이 설정 소스를 조회하지 못한 경우
    """
    if check_exclusion(resource, exclusion_policy) is not None:
        return None
    return resource.scan(criteria, compliance_levels)


@dataclass
class ScanReport:
    """여러 리소스 스캔 결과 모음

    Attributes:
        results: 스캔된 리소스 결과 (입력 순서)
        excluded: 제외된 리소스
    """

    results: list[ScanResult] = field(default_factory=list)
    excluded: list[ExcludedResource] = field(default_factory=list)

    @property
    def scanned_count(self) -> int:
        return len(self.results)

    @property
    def compliant_count(self) -> int:
        return sum(1 for r in self.results if r.is_compliant)

    @property
    def non_compliant_count(self) -> int:
        return sum(1 for r in self.results if not r.is_compliant)

    @property
    def non_compliant_ids(self) -> list[ResourceId]:
        return [r.resource_id for r in self.results if not r.is_compliant]

    @property
    def compliance_rate(self) -> float:
        """준수율 (0.0 ~ 1.0, 스캔 대상이 없으면 1.0)"""
        if not self.results:
            return 1.0
        return self.compliant_count / len(self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scanned_count": self.scanned_count,
            "compliant_count": self.compliant_count,
            "non_compliant_count": self.non_compliant_count,
            "excluded_count": len(self.excluded),
            "results": [r.to_dict() for r in self.results],
            "excluded": [e.to_dict() for e in self.excluded],
        }


def scan_resources(
    resources: Iterable[TaggedResource],
    criteria: TagCriteria,
    compliance_levels: Mapping[str, ComplianceLevel] | None = None,
    exclusion_policy: ExclusionPolicy | None = None,
) -> ScanReport:
    """여러 리소스를 순차 스캔하여 ScanReport 반환

    제외 정책 조회 실패(ExclusionLookupError)는 그대로 전파됩니다.
    """
    report = ScanReport()

    for resource in resources:
        excluded = check_exclusion(resource, exclusion_policy)
        if excluded is not None:
            report.excluded.append(excluded)
            continue
        report.results.append(resource.scan(criteria, compliance_levels))

    logger.info(
        "스캔 완료: 대상 %d개, 준수 %d개, 미준수 %d개, 제외 %d개",
        report.scanned_count,
        report.compliant_count,
        report.non_compliant_count,
        len(report.excluded),
    )
    return report
