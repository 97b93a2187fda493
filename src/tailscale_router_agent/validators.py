"""
입력값 검증 모듈
CIDR / Auth Key 형식 확인, 서브넷 목록 관리
"""

import re
from typing import Iterator, List
from .errors import ValidationError

CIDR_PATTERN = re.compile(r"^([0-9]{1,3}\.){3}[0-9]{1,3}/[0-9]{1,2}$")
AUTH_KEY_PREFIX = "tskey-"
AUTH_KEY_MIN_LENGTH = 20


def validate_cidr(value: str) -> bool:
    """IPv4 CIDR 형식 확인 (예: 192.168.1.0/24)

    옥텟의 선행 0 과 /0 프리픽스는 허용한다.
    """
    if not value or not CIDR_PATTERN.fullmatch(value):
        return False

    ip, prefix = value.split("/", 1)
    if any(int(octet) > 255 for octet in ip.split(".")):
        return False

    return int(prefix) <= 32


def validate_auth_key(value: str) -> bool:
    """Auth Key 형식 확인

    형식만 검사한다. 실제 유효성은 tailscale up 인증 시점에 확인된다.
    """
    if not value:
        return False
    return len(value) >= AUTH_KEY_MIN_LENGTH and value.startswith(AUTH_KEY_PREFIX)


def ensure_cidr(value: str) -> str:
    """CIDR 검증, 실패 시 ValidationError"""
    value = (value or "").strip()
    if not validate_cidr(value):
        raise ValidationError(f"Invalid CIDR: {value!r} (e.g. 192.168.1.0/24)")
    return value


def ensure_auth_key(value: str) -> str:
    """Auth Key 검증, 실패 시 ValidationError (메시지에 값은 포함하지 않음)"""
    value = (value or "").strip()
    if not validate_auth_key(value):
        raise ValidationError(
            f"Invalid auth key format. Auth keys should start with '{AUTH_KEY_PREFIX}' "
            f"and be at least {AUTH_KEY_MIN_LENGTH} characters long."
        )
    return value


class SubnetSet:
    """광고할 서브넷 목록 (입력 순서 유지, 중복 무시)"""

    def __init__(self):
        self._items: List[str] = []

    def add(self, cidr: str) -> bool:
        """CIDR 추가, 이미 있으면 False"""
        if cidr in self._items:
            return False
        self._items.append(cidr)
        return True

    def serialize(self) -> str:
        """--advertise-routes 값"""
        return ",".join(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, cidr: object) -> bool:
        return cidr in self._items

    def __repr__(self) -> str:
        return f"SubnetSet({self._items!r})"
