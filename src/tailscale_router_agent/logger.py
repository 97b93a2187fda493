"""
로깅 시스템
고정 경로 로그 파일 + 콘솔(Rich) 출력, 디버그 모드 지원
"""

import logging
import os
from typing import Optional
from rich.logging import RichHandler
from rich.console import Console
from .errors import ConfigError

console = Console()

DEFAULT_LOG_FILE = "/var/log/tailscale-setup.log"
FALLBACK_LOG_FILE = "~/.tailscale-router-agent/setup.log"


class LogFileFormatter(logging.Formatter):
    """로그 파일용 포맷터, WARNING 을 WARN 으로 표기"""

    LEVEL_LABELS = {"WARNING": "WARN"}

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname
        record.levelname = self.LEVEL_LABELS.get(original, original)
        try:
            return super().format(record)
        finally:
            record.levelname = original


def resolve_level(log_level: str) -> int:
    """레벨 이름을 logging 상수로 변환"""
    level = getattr(logging, str(log_level).upper(), None)
    if not isinstance(level, int):
        raise ConfigError(f"Unknown log level: {log_level}")
    return level


class AgentLogger:
    """에이전트 로거"""

    def __init__(self, log_file: str = DEFAULT_LOG_FILE, log_level: str = "INFO", debug: bool = False):
        self.log_level = logging.DEBUG if debug else resolve_level(log_level)
        self.debug_mode = debug

        # 로거 설정
        self.logger = logging.getLogger("tailscale_router_agent")
        self.logger.setLevel(self.log_level)
        self.logger.propagate = False

        # 기존 핸들러 제거
        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()

        # 콘솔 핸들러 (Rich)
        rich_handler = RichHandler(
            console=console,
            rich_tracebacks=True,
            show_time=False,
            show_path=debug
        )
        rich_handler.setLevel(self.log_level)
        self.logger.addHandler(rich_handler)

        # 파일 핸들러
        self.log_file = self._open_file_handler(log_file)

    def _open_file_handler(self, log_file: str) -> str:
        """로그 파일 핸들러 추가, 실패 시 홈 디렉토리로 대체"""
        file_formatter = LogFileFormatter(
            '[%(asctime)s] [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        for candidate in (log_file, FALLBACK_LOG_FILE):
            path = os.path.expanduser(candidate)
            try:
                os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
                file_handler = logging.FileHandler(path, encoding='utf-8')
            except OSError as e:
                self.logger.warning(f"Cannot open log file {path}: {e}")
                continue
            file_handler.setLevel(self.log_level)
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)
            return path

        return ""

    def debug(self, message: str):
        """디버그 로그"""
        self.logger.debug(message)

    def info(self, message: str):
        """정보 로그"""
        self.logger.info(message)

    def warning(self, message: str):
        """경고 로그"""
        self.logger.warning(message)

    def error(self, message: str):
        """에러 로그"""
        self.logger.error(message)

    def exception(self, message: str):
        """예외 로그 (트레이스백 포함)"""
        self.logger.exception(message)

    def get_log_file(self) -> str:
        """로그 파일 경로 반환 (없으면 빈 문자열)"""
        return self.log_file


# 글로벌 로거 인스턴스
_logger: Optional[AgentLogger] = None


def get_logger(log_file: str = DEFAULT_LOG_FILE,
               log_level: str = "INFO",
               debug: bool = False) -> AgentLogger:
    """로거 인스턴스 가져오기"""
    global _logger
    if _logger is None:
        _logger = AgentLogger(log_file, log_level, debug)
    return _logger


def init_logger(log_file: str, log_level: str, debug: bool) -> AgentLogger:
    """로거 초기화"""
    global _logger
    _logger = AgentLogger(log_file, log_level, debug)
    return _logger
