"""
tag_inspector/criteria.py - 태그 정책 정의

리소스 태그를 검사할 규칙 묶음(TagCriteria)과, 이름으로 참조되는
재사용 가능한 규칙 묶음(ComplianceLevel) 및 그 레지스트리를 정의합니다.

설정 파일 파싱은 범위 밖이며, 이미 디코딩된 dict/list 데이터를 받습니다.

Usage:
    from tag_inspector.criteria import ComplianceLevelRegistry, TagCriteria

    criteria = TagCriteria.from_dict({
        "required_tags": ["Environment", "Owner"],
        "forbidden_tags": ["temp"],
        "specific_tags": {"Environment": "prod"},
        "minimum_required_tags": 2,
        "compliance_level": "pci",
    })

    levels = ComplianceLevelRegistry.from_dict({
        "pci": {"required_tags": ["DataClassification"], "specific_tags": {"Compliance": "pci"}},
    })
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .exceptions import ConfigError, ValidationError

CRITERIA_FIELDS = (
    "required_tags",
    "forbidden_tags",
    "specific_tags",
    "minimum_required_tags",
    "compliance_level",
)

COMPLIANCE_LEVEL_FIELDS = ("required_tags", "specific_tags")


# =============================================================================
# 입력 정규화 헬퍼
# =============================================================================


def _string_set(field_name: str, value: Any) -> frozenset[str]:
    """키 목록을 frozenset으로 정규화 (None은 빈 집합)"""
    if value is None:
        return frozenset()
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise ValidationError(field=field_name, value=value, expected="list[str]")

    keys = list(value)
    for key in keys:
        if not isinstance(key, str):
            raise ValidationError(field=field_name, value=key, expected="str")
    return frozenset(keys)


def _string_map(field_name: str, value: Any) -> Mapping[str, str]:
    """키-값 매핑을 읽기 전용 매핑으로 정규화 (None은 빈 매핑)"""
    if value is None:
        return MappingProxyType({})
    if not isinstance(value, Mapping):
        raise ValidationError(field=field_name, value=value, expected="dict[str, str]")

    for key, expected in value.items():
        if not isinstance(key, str) or not isinstance(expected, str):
            raise ValidationError(field=f"{field_name}.{key}", value=expected, expected="str")
    return MappingProxyType(dict(value))


def _check_keys(section: str, data: Mapping[str, Any], allowed: tuple[str, ...]) -> None:
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise ConfigError(section, f"알 수 없는 키: {', '.join(map(str, unknown))}")


# =============================================================================
# 컴플라이언스 레벨
# =============================================================================


@dataclass(frozen=True)
class ComplianceLevel:
    """이름으로 참조되는 규칙 묶음

    Attributes:
        name: 레벨 이름 (레지스트리 키와 동일)
        required_tags: 반드시 존재해야 하는 태그 키
        specific_tags: 정확히 일치해야 하는 태그 키-값
    """

    name: str = ""
    required_tags: frozenset[str] = field(default_factory=frozenset)
    specific_tags: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "required_tags", _string_set("required_tags", self.required_tags))
        object.__setattr__(self, "specific_tags", _string_map("specific_tags", self.specific_tags))

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any] | None) -> ComplianceLevel:
        """디코딩된 설정으로부터 생성"""
        data = data or {}
        if not isinstance(data, Mapping):
            raise ConfigError(f"compliance_levels.{name}", "매핑 형식이어야 합니다")
        _check_keys(f"compliance_levels.{name}", data, COMPLIANCE_LEVEL_FIELDS)

        return cls(
            name=name,
            required_tags=data.get("required_tags"),
            specific_tags=data.get("specific_tags"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "required_tags": sorted(self.required_tags),
            "specific_tags": dict(sorted(self.specific_tags.items())),
        }


class ComplianceLevelRegistry(Mapping[str, ComplianceLevel]):
    """읽기 전용 레벨 이름 -> ComplianceLevel 매핑

    생성 이후 항목을 추가/삭제/변경하는 메서드가 없으므로
    스캔 도중 여러 스레드에서 공유해도 안전합니다.
    조회는 대소문자를 구분하는 정확한 문자열 일치입니다.
    """

    def __init__(self, levels: Mapping[str, ComplianceLevel] | Iterable[ComplianceLevel] | None = None):
        if levels is None:
            entries: dict[str, ComplianceLevel] = {}
        elif isinstance(levels, Mapping):
            entries = dict(levels)
        else:
            entries = {level.name: level for level in levels}
        self._levels = MappingProxyType(entries)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ComplianceLevelRegistry:
        """{레벨 이름: {"required_tags": [...], "specific_tags": {...}}} 형식에서 생성"""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError("compliance_levels", "매핑 형식이어야 합니다")
        return cls({name: ComplianceLevel.from_dict(name, spec) for name, spec in data.items()})

    def __getitem__(self, name: str) -> ComplianceLevel:
        return self._levels[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._levels)

    def __len__(self) -> int:
        return len(self._levels)

    def __repr__(self) -> str:
        return f"ComplianceLevelRegistry({sorted(self._levels)})"

    def to_dict(self) -> dict[str, Any]:
        return {name: self._levels[name].to_dict() for name in sorted(self._levels)}


# =============================================================================
# 태그 검사 기준
# =============================================================================


@dataclass(frozen=True)
class TagCriteria:
    """스캔 호출 단위로 전달되는 태그 검사 기준

    Attributes:
        required_tags: 반드시 존재해야 하는 태그 키
        forbidden_tags: 존재하면 안 되는 태그 키
        specific_tags: 정확히 일치해야 하는 태그 키-값
        minimum_required_tags: 최소 태그 개수 (0이면 검사 안 함)
        compliance_level: 레지스트리에서 조회할 레벨 이름 (빈 문자열이면 없음)
    """

    required_tags: frozenset[str] = field(default_factory=frozenset)
    forbidden_tags: frozenset[str] = field(default_factory=frozenset)
    specific_tags: Mapping[str, str] = field(default_factory=dict)
    minimum_required_tags: int = 0
    compliance_level: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "required_tags", _string_set("required_tags", self.required_tags))
        object.__setattr__(self, "forbidden_tags", _string_set("forbidden_tags", self.forbidden_tags))
        object.__setattr__(self, "specific_tags", _string_map("specific_tags", self.specific_tags))

        minimum = self.minimum_required_tags
        if isinstance(minimum, bool) or not isinstance(minimum, int) or minimum < 0:
            raise ValidationError(field="minimum_required_tags", value=minimum, expected="0 이상의 정수")

        level = self.compliance_level
        if level is None:
            object.__setattr__(self, "compliance_level", "")
        elif not isinstance(level, str):
            raise ValidationError(field="compliance_level", value=level, expected="str")

    @property
    def has_rules(self) -> bool:
        """구조적 규칙(필수/금지/특정값/최소개수)이 하나라도 있는지 여부

        compliance_level만 지정된 기준은 규칙이 없는 것으로 간주합니다.
        """
        return bool(
            self.required_tags or self.forbidden_tags or self.specific_tags or self.minimum_required_tags > 0
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> TagCriteria:
        """디코딩된 설정으로부터 생성

        Raises:
            ConfigError: 매핑이 아니거나 알 수 없는 키가 있는 경우
            ValidationError: 값의 타입이 맞지 않는 경우
        """
        data = data or {}
        if not isinstance(data, Mapping):
            raise ConfigError("criteria", "매핑 형식이어야 합니다")
        _check_keys("criteria", data, CRITERIA_FIELDS)

        # null만 기본값으로 대체하고 나머지 값 검증은 생성자에 맡김
        minimum = data.get("minimum_required_tags")
        return cls(
            required_tags=data.get("required_tags"),
            forbidden_tags=data.get("forbidden_tags"),
            specific_tags=data.get("specific_tags"),
            minimum_required_tags=0 if minimum is None else minimum,
            compliance_level=data.get("compliance_level"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "required_tags": sorted(self.required_tags),
            "forbidden_tags": sorted(self.forbidden_tags),
            "specific_tags": dict(sorted(self.specific_tags.items())),
            "minimum_required_tags": self.minimum_required_tags,
            "compliance_level": self.compliance_level,
        }
