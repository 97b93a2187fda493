"""
Auth Key 보관 모듈
사용 직후 메모리에서 0 으로 덮어쓴다
"""

from typing import Optional


class AuthKey:
    """Tailscale Auth Key 보관 객체

    값은 bytearray 로 보관하며 clear() 호출 시 모든 바이트를 0 으로 덮어쓴다.
    repr/str 은 값을 노출하지 않는다.
    """

    def __init__(self, value: str):
        self._buffer: Optional[bytearray] = bytearray(value.encode("utf-8"))

    @property
    def cleared(self) -> bool:
        return self._buffer is None

    def reveal(self) -> str:
        """실제 값 반환 (명령 인자 구성 시에만 사용)"""
        if self._buffer is None:
            raise ValueError("Auth key has already been cleared")
        return self._buffer.decode("utf-8")

    def clear(self):
        """메모리에서 값 제거"""
        if self._buffer is None:
            return
        for i in range(len(self._buffer)):
            self._buffer[i] = 0
        self._buffer = None

    def __len__(self) -> int:
        return 0 if self._buffer is None else len(self._buffer)

    def __repr__(self) -> str:
        state = "cleared" if self.cleared else "********"
        return f"AuthKey({state})"

    __str__ = __repr__

    def __enter__(self) -> "AuthKey":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.clear()
