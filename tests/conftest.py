"""
tests/conftest.py - pytest 공통 픽스처

테스트용 리소스/기준/레벨 팩토리와 AWS 모킹 환경을 제공합니다.

Usage:
    def test_something(make_resource, pci_levels):
        resource = make_resource(tags={"env": "prod"})
"""

import os
import sys
from pathlib import Path

import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from tag_inspector.criteria import ComplianceLevel, ComplianceLevelRegistry, TagCriteria  # noqa: E402
from tag_inspector.resources import AWSResource  # noqa: E402

# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """테스트 환경 설정 (실제 AWS 자격 증명 사용 방지)"""
    monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-northeast-2")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    yield


# =============================================================================
# 리소스 팩토리
# =============================================================================


@pytest.fixture
def make_resource():
    """AWSResource 팩토리"""

    def _make(
        tags=None,
        resource_type="ec2:instance",
        resource_id="i-1234567890abcdef0",
        region="ap-northeast-2",
        metadata=None,
    ):
        return AWSResource(
            resource_type=resource_type,
            resource_id=resource_id,
            arn=f"arn:aws:ec2:{region}:123456789012:instance/{resource_id}",
            region=region,
            tags=tags,
            metadata=metadata,
        )

    return _make


@pytest.fixture
def sample_tags():
    """일반적인 준수 태그"""
    return {"Environment": "prod", "Owner": "platform", "CostCenter": "CC-1234"}


# =============================================================================
# 기준 / 레벨
# =============================================================================


@pytest.fixture
def basic_criteria():
    """필수 태그만 있는 기준"""
    return TagCriteria(required_tags={"Environment", "Owner"})


@pytest.fixture
def pci_levels():
    """pci 레벨 하나를 가진 레지스트리"""
    return ComplianceLevelRegistry(
        [
            ComplianceLevel(
                name="pci",
                required_tags={"DataClassification"},
                specific_tags={"Compliance": "pci"},
            )
        ]
    )
