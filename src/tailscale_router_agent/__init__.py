"""
Tailscale Router Agent
리눅스 호스트를 Tailscale 서브넷 라우터 / Exit node 로 설정하는 에이전트

Features:
- root 실행 방지 및 sudo 권한 확인
- 필수 패키지 자동 설치 (idempotent)
- IP forwarding sysctl 설정 및 백업 (idempotent)
- UDP GRO forwarding NIC 최적화 및 재부팅 후 유지
- Auth Key / 서브넷 CIDR 입력 검증
"""

__version__ = "1.0.0"
__author__ = "DevOps Team"
