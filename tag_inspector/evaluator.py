"""
tag_inspector/evaluator.py - 태그 기준 평가기

리소스 하나의 태그와 TagCriteria(선택적으로 컴플라이언스 레벨 참조)를 받아
사람이 읽을 수 있는 위반 문자열 목록을 순서대로 생성합니다.

평가 순서 (고정):
    1. 규칙 없는 기준 -> 단일 위반 후 종료
    2. 태그 없는 리소스 -> 단일 위반 후 종료
    3. 최소 태그 개수
    4. 필수 태그
    5. 금지 태그
    6. 특정 태그 값
    7. 컴플라이언스 레벨 (필수 태그, 특정 태그 값)

각 단계 안에서는 키를 사전순으로 순회하므로 같은 입력은 항상 같은 출력을 냅니다.
평가기는 I/O나 공유 상태가 없는 순수 함수이며, 이상 상황은 예외 대신
위반 문자열로만 보고합니다.

Usage:
    from tag_inspector.evaluator import evaluate, validate

    issues = evaluate({"env": "prod"}, TagCriteria(required_tags={"env", "owner"}), {})
    # ["missing required tag: owner"]
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from .criteria import ComplianceLevel, TagCriteria
from .types import Tags

logger = logging.getLogger(__name__)

# =============================================================================
# 위반 메시지
# =============================================================================

MSG_NO_RULES = "criteria specifies no validation rules"
MSG_NO_TAGS = "resource has no tags"
MSG_INSUFFICIENT_TAGS = "insufficient tags: found {found}, minimum required is {minimum}"
MSG_MISSING_REQUIRED = "missing required tag: {key}"
MSG_FORBIDDEN = "contains forbidden tag: {key}"
MSG_MISMATCH = "tag mismatch: {key} should be {expected}"
MSG_UNKNOWN_LEVEL = "unknown compliance level: {name}"
MSG_LEVEL_MISSING_REQUIRED = "missing required tag (compliance level): {key}"
MSG_LEVEL_MISMATCH = "tag mismatch (compliance level): {key} should be {expected}"


def _missing_required(tags: Tags, keys: Iterable[str], template: str) -> list[str]:
    return [template.format(key=key) for key in sorted(keys) if key and key not in tags]


def _mismatched(tags: Tags, expected_tags: Mapping[str, str], template: str) -> list[str]:
    issues = []
    for key in sorted(expected_tags):
        if not key:
            continue
        expected = expected_tags[key]
        if key not in tags or tags[key] != expected:
            issues.append(template.format(key=key, expected=expected))
    return issues


def evaluate(
    tags: Tags | None,
    criteria: TagCriteria,
    compliance_levels: Mapping[str, ComplianceLevel] | None = None,
) -> list[str]:
    """태그를 기준에 대해 평가하여 위반 목록 반환

    Args:
        tags: 리소스 태그 (None이면 빈 태그)
        criteria: 검사 기준
        compliance_levels: 레벨 이름 -> ComplianceLevel (읽기만 함)

    Returns:
        위반 문자열 목록 (빈 목록 = 준수)
    """
    tags = tags or {}
    compliance_levels = compliance_levels or {}

    if not criteria.has_rules:
        return [MSG_NO_RULES]

    # 태그 없는 리소스는 규칙마다가 아니라 한 번만 보고
    if not tags:
        return [MSG_NO_TAGS]

    issues: list[str] = []

    minimum = criteria.minimum_required_tags
    if minimum > 0 and len(tags) < minimum:
        issues.append(MSG_INSUFFICIENT_TAGS.format(found=len(tags), minimum=minimum))

    issues.extend(_missing_required(tags, criteria.required_tags, MSG_MISSING_REQUIRED))

    issues.extend(MSG_FORBIDDEN.format(key=key) for key in sorted(criteria.forbidden_tags) if key and key in tags)

    issues.extend(_mismatched(tags, criteria.specific_tags, MSG_MISMATCH))

    level_name = criteria.compliance_level
    if level_name:
        level = compliance_levels.get(level_name)
        if level is None:
            issues.append(MSG_UNKNOWN_LEVEL.format(name=level_name))
        else:
            issues.extend(_missing_required(tags, level.required_tags, MSG_LEVEL_MISSING_REQUIRED))
            issues.extend(_mismatched(tags, level.specific_tags, MSG_LEVEL_MISMATCH))

    logger.debug("태그 평가 완료: 태그 %d개, 위반 %d개", len(tags), len(issues))
    return issues


def validate(
    tags: Tags | None,
    criteria: TagCriteria,
    compliance_levels: Mapping[str, ComplianceLevel] | None = None,
) -> bool:
    """evaluate 결과가 비어 있으면 True"""
    return not evaluate(tags, criteria, compliance_levels)
