"""
tests/tag_inspector/test_scanner.py - Scan flow and result record tests
"""

import pytest

from tag_inspector.criteria import TagCriteria
from tag_inspector.exceptions import ExclusionLookupError
from tag_inspector.exclusions import ExclusionRule, StaticExclusionPolicy
from tag_inspector.scanner import (
    COMPLIANCE_TAG_COMPLIANT,
    COMPLIANCE_TAG_NON_COMPLIANT,
    ExcludedResource,
    ScanReport,
    ScanResult,
    check_exclusion,
    scan_resource,
    scan_resources,
)


class FailingPolicy:
    """Exclusion policy whose configuration source is unreachable"""

    def is_excluded(self, resource_type, resource_id):
        raise ExclusionLookupError(service="ssm", operation="get_parameter", error_code="ThrottlingException")


# =============================================================================
# ScanResult
# =============================================================================


class TestScanResult:
    """Result record behaviour"""

    def test_compliant_iff_no_issues(self):
        assert ScanResult("ec2:instance", "i-1", "", "").is_compliant
        result = ScanResult("ec2:instance", "i-1", "", "", issues=["resource has no tags"])
        assert not result.is_compliant
        assert result.issue_count == 1

    def test_to_dict_omits_empty_optional_fields(self):
        data = ScanResult("s3:bucket", "b", "arn:aws:s3:::b", "ap-northeast-2", tags={"env": "prod"}).to_dict()
        assert data == {
            "resource_type": "s3:bucket",
            "resource_id": "b",
            "arn": "arn:aws:s3:::b",
            "region": "ap-northeast-2",
            "tags": {"env": "prod"},
            "issues": [],
        }

    def test_to_dict_includes_optional_fields(self):
        result = ScanResult(
            "s3:bucket",
            "b",
            "arn:aws:s3:::b",
            "ap-northeast-2",
            issues=["resource has no tags"],
            metadata={"versioning": "Enabled"},
            compliance_tag=COMPLIANCE_TAG_NON_COMPLIANT,
        )
        data = result.to_dict()
        assert data["issues"] == ["resource has no tags"]
        assert data["metadata"] == {"versioning": "Enabled"}
        assert data["compliance_tag"] == "non-compliant"

    def test_snapshots_are_read_only(self):
        tags = {"env": "prod"}
        result = ScanResult("ec2:instance", "i-1", "", "", tags=tags)
        tags["env"] = "dev"

        assert result.tags["env"] == "prod"
        with pytest.raises(TypeError):
            result.tags["env"] = "dev"


# =============================================================================
# scan_resource
# =============================================================================


class TestScanResource:
    """Single resource scan"""

    def test_compliant_resource(self, make_resource, sample_tags, basic_criteria):
        resource = make_resource(tags=sample_tags, metadata={"state": "running"})
        result = scan_resource(resource, basic_criteria)

        assert result.is_compliant
        assert result.resource_id == resource.get_resource_id()
        assert result.arn == resource.get_arn()
        assert dict(result.tags) == sample_tags
        assert dict(result.metadata) == {"state": "running"}
        assert result.compliance_tag == COMPLIANCE_TAG_COMPLIANT

    def test_non_compliant_resource(self, make_resource, basic_criteria):
        result = scan_resource(make_resource(tags={"Environment": "prod"}), basic_criteria)
        assert result.issues == ("missing required tag: Owner",)
        assert result.compliance_tag == COMPLIANCE_TAG_NON_COMPLIANT

    def test_untagged_resource(self, make_resource, basic_criteria):
        result = scan_resource(make_resource(tags=None), basic_criteria)
        assert result.issues == ("resource has no tags",)
        assert dict(result.tags) == {}

    def test_compliance_level_applied(self, make_resource, pci_levels):
        criteria = TagCriteria(required_tags=["Environment"], compliance_level="pci")
        result = scan_resource(make_resource(tags={"Environment": "prod"}), criteria, pci_levels)
        assert result.issues == (
            "missing required tag (compliance level): DataClassification",
            "tag mismatch (compliance level): Compliance should be pci",
        )

    def test_excluded_returns_none(self, make_resource, basic_criteria):
        policy = StaticExclusionPolicy([ExclusionRule("ec2:instance", "i-skip")])
        assert scan_resource(make_resource(resource_id="i-skip"), basic_criteria, exclusion_policy=policy) is None

    def test_not_excluded_is_scanned(self, make_resource, basic_criteria):
        policy = StaticExclusionPolicy([ExclusionRule("ec2:instance", "i-skip")])
        result = scan_resource(make_resource(resource_id="i-keep"), basic_criteria, exclusion_policy=policy)
        assert result is not None
        assert result.issues == ("resource has no tags",)

    def test_lookup_error_propagates(self, make_resource, basic_criteria):
        with pytest.raises(ExclusionLookupError):
            scan_resource(make_resource(), basic_criteria, exclusion_policy=FailingPolicy())

    def test_resource_not_mutated(self, make_resource, basic_criteria):
        resource = make_resource(tags={"Environment": "prod"})
        before = dict(resource.get_tags())
        scan_resource(resource, basic_criteria)
        assert dict(resource.get_tags()) == before


# =============================================================================
# scan_resources / ScanReport
# =============================================================================


class TestScanResources:
    """Batch scan and summary"""

    def test_report_counts(self, make_resource, sample_tags, basic_criteria):
        resources = [
            make_resource(tags=sample_tags, resource_id="i-ok"),
            make_resource(tags={"Environment": "prod"}, resource_id="i-bad"),
            make_resource(tags=None, resource_id="i-untagged"),
            make_resource(tags=sample_tags, resource_id="i-skip"),
        ]
        policy = StaticExclusionPolicy([ExclusionRule("ec2:instance", "i-skip", "maintenance")])

        report = scan_resources(resources, basic_criteria, exclusion_policy=policy)

        assert report.scanned_count == 3
        assert report.compliant_count == 1
        assert report.non_compliant_count == 2
        assert report.non_compliant_ids == ["i-bad", "i-untagged"]
        assert report.compliance_rate == pytest.approx(1 / 3)
        assert report.excluded == [
            ExcludedResource(
                resource_type="ec2:instance",
                resource_id="i-skip",
                arn="arn:aws:ec2:ap-northeast-2:123456789012:instance/i-skip",
                reason="maintenance",
            )
        ]

    def test_results_keep_input_order(self, make_resource, basic_criteria):
        ids = ["i-3", "i-1", "i-2"]
        report = scan_resources([make_resource(resource_id=i) for i in ids], basic_criteria)
        assert [r.resource_id for r in report.results] == ids

    def test_empty_report(self, basic_criteria):
        report = scan_resources([], basic_criteria)
        assert report.scanned_count == 0
        assert report.compliance_rate == 1.0

    def test_to_dict(self, make_resource, sample_tags, basic_criteria):
        report = scan_resources([make_resource(tags=sample_tags)], basic_criteria)
        data = report.to_dict()
        assert data["scanned_count"] == 1
        assert data["compliant_count"] == 1
        assert data["non_compliant_count"] == 0
        assert data["excluded_count"] == 0
        assert data["results"][0]["compliance_tag"] == "compliant"
        assert data["excluded"] == []

    def test_lookup_error_propagates(self, make_resource, basic_criteria):
        with pytest.raises(ExclusionLookupError):
            scan_resources([make_resource()], basic_criteria, exclusion_policy=FailingPolicy())

    def test_report_default_is_empty(self):
        report = ScanReport()
        assert report.results == []
        assert report.excluded == []


class CountingPolicy:
    """Static policy that records every lookup"""

    def __init__(self, *rules):
        self._policy = StaticExclusionPolicy(rules)
        self.calls = []

    def is_excluded(self, resource_type, resource_id):
        self.calls.append((resource_type, resource_id))
        return self._policy.is_excluded(resource_type, resource_id)


# =============================================================================
# check_exclusion
# =============================================================================


class TestCheckExclusion:
    """Shared exclusion step of both scan paths"""

    def test_no_policy(self, make_resource):
        assert check_exclusion(make_resource(), None) is None

    def test_not_excluded(self, make_resource):
        policy = CountingPolicy(ExclusionRule("ec2:instance", "i-skip"))
        assert check_exclusion(make_resource(resource_id="i-keep"), policy) is None
        assert policy.calls == [("ec2:instance", "i-keep")]

    def test_excluded_record(self, make_resource):
        policy = CountingPolicy(ExclusionRule("ec2:instance", "i-skip", "maintenance"))
        excluded = check_exclusion(make_resource(resource_id="i-skip"), policy)
        assert excluded.resource_id == "i-skip"
        assert excluded.reason == "maintenance"

    @pytest.mark.parametrize("resource_id", ["i-skip", "i-keep"])
    def test_single_and_batch_paths_agree(self, make_resource, sample_tags, basic_criteria, resource_id):
        resource = make_resource(tags=sample_tags, resource_id=resource_id)
        single_policy = CountingPolicy(ExclusionRule("ec2:instance", "i-skip"))
        batch_policy = CountingPolicy(ExclusionRule("ec2:instance", "i-skip"))

        single = scan_resource(resource, basic_criteria, exclusion_policy=single_policy)
        report = scan_resources([resource], basic_criteria, exclusion_policy=batch_policy)

        assert single_policy.calls == batch_policy.calls == [("ec2:instance", resource_id)]
        if single is None:
            assert report.results == []
            assert [e.resource_id for e in report.excluded] == [resource_id]
        else:
            assert report.results == [single]
            assert report.excluded == []
