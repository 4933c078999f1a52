"""
tag_inspector/exclusions.py - 스캔 제외 정책

"이 리소스를 스캔에서 제외해야 하는가?"에 답하는 외부 협력자 계약과 구현체.

제외 규칙 매칭 우선순위:
    1. 정확한 리소스 ID 일치
    2. 와일드카드 패턴 일치 (fnmatch, 예: "i-0abc*")
    3. 리소스 타입 전체 제외 (resource_id가 "" 또는 "*")

설정 소스를 조회하지 못한 경우(SSM 접근 실패 등)는 제외 여부를 판단할 수
없는 상태이므로 ExclusionLookupError로 호출자에게 전달합니다.

Usage:
    from tag_inspector.exclusions import StaticExclusionPolicy

    policy = StaticExclusionPolicy.from_config([
        {"resource_type": "ec2:instance", "resource_id": "i-0abc", "reason": "legacy host"},
        {"resource_type": "logs:log-group"},
    ])
    excluded, reason = policy.is_excluded("ec2:instance", "i-0abc")
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Any, Protocol, runtime_checkable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import get_default_region, get_exclusion_parameter_name
from .exceptions import ConfigError, ExclusionLookupError
from .types import ResourceId, ResourceType

logger = logging.getLogger(__name__)

_WILDCARD_CHARS = ("*", "?", "[")
_BLANKET_IDS = ("", "*")
_RULE_FIELDS = ("resource_type", "resource_id", "reason")


@runtime_checkable
class ExclusionPolicy(Protocol):
    """스캔 제외 여부를 판단하는 협력자"""

    def is_excluded(self, resource_type: ResourceType, resource_id: ResourceId) -> tuple[bool, str]:
        """(제외 여부, 사유) 반환"""
        ...


@dataclass(frozen=True)
class ExclusionRule:
    """제외 규칙

    Attributes:
        resource_type: 대상 리소스 타입 (정확히 일치)
        resource_id: 리소스 ID, 와일드카드 패턴, 또는 ""/"*" (타입 전체)
        reason: 제외 사유
    """

    resource_type: ResourceType
    resource_id: str = ""
    reason: str = ""

    @property
    def is_blanket(self) -> bool:
        return self.resource_id in _BLANKET_IDS

    @property
    def is_pattern(self) -> bool:
        return not self.is_blanket and any(c in self.resource_id for c in _WILDCARD_CHARS)

    def describe(self) -> str:
        """사유가 없을 때 사용할 기본 설명"""
        if self.is_blanket:
            return f"resource type {self.resource_type} is excluded"
        return f"matched exclusion rule {self.resource_type}/{self.resource_id}"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], index: int = 0) -> ExclusionRule:
        key = f"exclusions[{index}]"
        if not isinstance(data, Mapping):
            raise ConfigError(key, "매핑 형식이어야 합니다")

        unknown = sorted(set(data) - set(_RULE_FIELDS))
        if unknown:
            raise ConfigError(key, f"알 수 없는 키: {', '.join(map(str, unknown))}")

        resource_type = data.get("resource_type")
        if not resource_type or not isinstance(resource_type, str):
            raise ConfigError(key, "resource_type은 비어있지 않은 문자열이어야 합니다")

        resource_id = data.get("resource_id") or ""
        reason = data.get("reason") or ""
        if not isinstance(resource_id, str) or not isinstance(reason, str):
            raise ConfigError(key, "resource_id/reason은 문자열이어야 합니다")

        return cls(resource_type=resource_type, resource_id=resource_id, reason=reason)


class StaticExclusionPolicy:
    """메모리 내 규칙 목록 기반 제외 정책

    생성 이후 규칙이 바뀌지 않으므로 여러 스레드에서 공유할 수 있습니다.
    """

    def __init__(self, rules: Iterable[ExclusionRule] = ()):
        grouped: dict[str, list[ExclusionRule]] = {}
        for rule in rules:
            grouped.setdefault(rule.resource_type, []).append(rule)
        self._rules: dict[str, tuple[ExclusionRule, ...]] = {
            rtype: tuple(items) for rtype, items in grouped.items()
        }

    @classmethod
    def from_config(cls, entries: Iterable[Mapping[str, Any]] | None) -> StaticExclusionPolicy:
        """디코딩된 설정 목록으로부터 생성

        Raises:
            ConfigError: 목록이 아니거나 항목 형식이 잘못된 경우
        """
        if entries is None:
            return cls()
        if isinstance(entries, (str, bytes, Mapping)) or not isinstance(entries, Iterable):
            raise ConfigError("exclusions", "목록 형식이어야 합니다")
        return cls(ExclusionRule.from_dict(entry, i) for i, entry in enumerate(entries))

    @property
    def rules(self) -> list[ExclusionRule]:
        return [rule for rtype in sorted(self._rules) for rule in self._rules[rtype]]

    def match(self, resource_type: ResourceType, resource_id: ResourceId) -> ExclusionRule | None:
        """우선순위(정확 > 패턴 > 타입 전체)에 따라 일치하는 규칙 반환"""
        candidates = self._rules.get(resource_type, ())

        for rule in candidates:
            if not rule.is_blanket and not rule.is_pattern and rule.resource_id == resource_id:
                return rule

        for rule in candidates:
            if rule.is_pattern and fnmatchcase(resource_id, rule.resource_id):
                return rule

        for rule in candidates:
            if rule.is_blanket:
                return rule

        return None

    def is_excluded(self, resource_type: ResourceType, resource_id: ResourceId) -> tuple[bool, str]:
        rule = self.match(resource_type, resource_id)
        if rule is None:
            return False, ""
        return True, rule.reason or rule.describe()


class SSMExclusionPolicy:
    """SSM Parameter Store에 저장된 JSON 규칙 목록 기반 제외 정책

    파라미터 값 예시:
        [{"resource_type": "ec2:instance", "resource_id": "i-*", "reason": "batch fleet"}]

    첫 조회 시 파라미터를 읽어 캐시하며, refresh()로 캐시를 비웁니다.
    """

    def __init__(
        self,
        parameter_name: str | None = None,
        client: Any = None,
        session: boto3.Session | None = None,
        region: str | None = None,
    ):
        self.parameter_name = parameter_name or get_exclusion_parameter_name()
        self._client = client
        self._session = session
        self._region = region or get_default_region()
        self._policy: StaticExclusionPolicy | None = None
        self._lock = threading.Lock()

    def _get_client(self) -> Any:
        if self._client is None:
            session = self._session or boto3.Session()
            self._client = session.client("ssm", region_name=self._region)
        return self._client

    def _load(self) -> StaticExclusionPolicy:
        try:
            response = self._get_client().get_parameter(Name=self.parameter_name, WithDecryption=True)
        except ClientError as e:
            logger.warning("제외 정책 파라미터 조회 실패 [%s]: %s", self.parameter_name, e)
            raise ExclusionLookupError.from_client_error("ssm", "get_parameter", e) from e
        except BotoCoreError as e:
            logger.warning("제외 정책 파라미터 조회 실패 [%s]: %s", self.parameter_name, e)
            raise ExclusionLookupError(
                service="ssm",
                operation="get_parameter",
                error_message=str(e),
                cause=e,
            ) from e

        raw = response.get("Parameter", {}).get("Value", "")
        try:
            entries = json.loads(raw) if raw.strip() else []
        except json.JSONDecodeError as e:
            raise ConfigError(self.parameter_name, "JSON 목록이 아닙니다", cause=e) from e

        policy = StaticExclusionPolicy.from_config(entries)
        logger.info("제외 정책 로드: %s (규칙 %d개)", self.parameter_name, len(policy.rules))
        return policy

    def get_policy(self) -> StaticExclusionPolicy:
        """캐시된 정책 반환 (없으면 로드)"""
        with self._lock:
            if self._policy is None:
                self._policy = self._load()
            return self._policy

    def refresh(self) -> None:
        """캐시를 비워 다음 조회 시 다시 로드"""
        with self._lock:
            self._policy = None

    def is_excluded(self, resource_type: ResourceType, resource_id: ResourceId) -> tuple[bool, str]:
        return self.get_policy().is_excluded(resource_type, resource_id)
