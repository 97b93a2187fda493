"""
CLI 메인 인터페이스
Click 및 Rich 기반 사용자 친화적 CLI
"""

import sys
import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from .config import Config
from .errors import AgentError, ConfigError
from .logger import get_logger, init_logger
from .orchestrator import ConnectionOrchestrator, SetupState

console = Console()


def show_summary(state: SetupState, log_file: str):
    """실행 결과 요약 표시"""
    console.print("\n" + "="*60)
    console.print("[bold]실행 결과 요약[/bold]")
    console.print("="*60 + "\n")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("단계", style="cyan", width=24)
    table.add_column("상태", width=6)
    table.add_column("메시지", width=30)

    for step in state.steps:
        table.add_row(step["step"], "[green]✓[/green]", step["message"][:30])

    console.print(table)

    if state.sysctl_backup:
        console.print(f"\n[bold]sysctl 백업:[/bold] {state.sysctl_backup}")
    if log_file:
        console.print(f"[bold]로그 파일:[/bold] {log_file}")


def run_setup(config_path, debug) -> int:
    """설정 실행, 종료 코드 반환"""
    try:
        cfg = Config.from_yaml(config_path) if config_path else Config()
        logger = init_logger(cfg.agent.log_file, cfg.agent.log_level, debug)
    except ConfigError as e:
        # 설정을 읽지 못했으므로 기본 로그 파일 사용
        logger = get_logger(debug=debug)
        logger.error(str(e))
        logger.info("Script execution completed")
        return 1

    logger.debug(f"Starting setup (config={cfg.config_path}, debug={debug})")

    console.print(Panel.fit(
        "[bold cyan]Tailscale Subnet Router Setup[/bold cyan]\n"
        "이 호스트를 Tailscale 서브넷 라우터 / Exit node 로 설정합니다.",
        border_style="cyan"
    ))

    try:
        state = ConnectionOrchestrator(cfg).run()
        logger.info("All tasks completed successfully!")
        show_summary(state, logger.get_log_file())
        return 0
    except AgentError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]사용자에 의해 중단되었습니다.[/yellow]")
        logger.warning("Execution interrupted by user")
        return 1
    except Exception:
        logger.exception("Unexpected error occurred")
        return 1
    finally:
        logger.info("Script execution completed")


@click.group(invoke_without_command=True)
@click.option('--config', '-c', type=click.Path(exists=True), help='설정 파일 경로')
@click.option('--debug', is_flag=True, help='디버그 모드')
@click.version_option(version="1.0.0")
@click.pass_context
def cli(ctx, config, debug):
    """Tailscale Subnet Router Agent

    인자 없이 실행하면 대화형으로 서브넷 라우터 설정을 진행합니다.
    """
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["debug"] = debug

    if ctx.invoked_subcommand is None:
        sys.exit(run_setup(config, debug))


@cli.command()
@click.pass_context
def setup(ctx):
    """서브넷 라우터 설정 (기본 명령)"""
    sys.exit(run_setup(ctx.obj["config"], ctx.obj["debug"]))


@cli.command()
@click.argument('output', type=click.Path(), default='./config.yaml')
def init(output):
    """샘플 설정 파일 생성"""
    cfg = Config()
    cfg.create_sample(output)
    console.print(f"[green]✓ 샘플 설정 파일 생성: {output}[/green]")
    console.print("[cyan]설정 파일을 편집한 후 다음 명령어로 실행하세요:[/cyan]")
    console.print(f"[cyan]  tailscale-router-agent --config {output}[/cyan]")


@cli.command()
@click.pass_context
def validate(ctx):
    """설정 파일 유효성 검사"""
    try:
        cfg = Config(ctx.obj["config"])
    except ConfigError as e:
        console.print(f"[red]✗ 설정 파일 오류: {str(e)}[/red]")
        sys.exit(1)

    console.print("[green]✓ 설정 파일이 유효합니다.[/green]")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("항목", style="cyan")
    table.add_column("값")

    table.add_row("설정 파일", cfg.config_path or "[yellow]기본값[/yellow]")
    table.add_row("필수 패키지", ", ".join(cfg.packages.required))
    table.add_row("sysctl 파일", cfg.sysctl.path)
    table.add_row("legacy source route", "예" if cfg.sysctl.legacy_source_route else "아니오")
    table.add_row("오프로드 기능", cfg.netdev.feature)
    table.add_row("dispatcher 훅", cfg.netdev.dispatcher_hook)
    table.add_row("로그 파일", cfg.agent.log_file)

    console.print(table)


def main():
    """메인 엔트리 포인트"""
    cli()


if __name__ == '__main__':
    main()
