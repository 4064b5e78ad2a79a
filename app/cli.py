# app/cli.py
import click
from flask import Flask, current_app
from flask.cli import AppGroup

notifications_cli = AppGroup('notifications', help='이메일 알림 outbox 관리 명령.')
adoptions_cli = AppGroup('adoptions', help='입양 신청 데이터 관리 명령.')


@notifications_cli.command('retry')
@click.option('--limit', default=100, show_default=True, help='한 번에 재시도할 최대 알림 수')
def retry_notifications(limit: int):
    """발송되지 않은(PENDING/FAILED) 알림을 다시 발송합니다."""
    sent, failed = current_app.services['notifications'].retry_pending(limit=limit)
    click.echo(f"Notifications retried: {sent} sent, {failed} failed")


@adoptions_cli.command('reconcile')
@click.option('--dry-run', is_flag=True, help='수정하지 않고 불일치 목록만 출력합니다.')
def reconcile_adoptions(dry_run: bool):
    """Approved 신청 기준으로 반려동물 입양 여부(is_adopted)를 재계산합니다."""
    repairs = current_app.services['adoptions'].reconcile_pet_availability(dry_run=dry_run)
    for repair in repairs:
        click.echo(f"{repair['pet_id']} ({repair['name']}): is_adopted {repair['was']} -> {repair['now']}")
    action = "would be repaired" if dry_run else "repaired"
    click.echo(f"{len(repairs)} pet(s) {action}")


def register_commands(app: Flask):
    app.cli.add_command(notifications_cli)
    app.cli.add_command(adoptions_cli)
