"""CLI tools for CRM administration and scheduled sweeps."""

import logging

import click

from app.db.enums import Role
from app.db.session import SessionLocal


@click.group()
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """CRM CLI tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
def archive_cleanup():
    """
    Hard-delete records archived longer than the grace period.

    Schedule daily. Exits non-zero if the sweep fails (nothing is deleted).

    Example:
        python -m app.cli archive-cleanup
    """
    from app.services import archive_service

    try:
        deleted = archive_service.run_archive_cleanup(SessionLocal)
    except Exception as e:
        click.echo(f"❌ Archive cleanup failed: {e}")
        raise SystemExit(1)

    click.echo(f"✓ Archive cleanup deleted {sum(deleted.values())} records")
    for record_type, count in deleted.items():
        if count:
            click.echo(f"  {record_type}: {count}")


@cli.command()
@click.option("--max-retries", type=int, default=None, help="Override DELETE_REQUEST_MAX_RETRIES")
def delete_request_expiry(max_retries: int | None):
    """
    Expire stale pending delete requests and open replacement requests.

    Schedule hourly.

    Example:
        python -m app.cli delete-request-expiry
    """
    from app.services import delete_request_service

    summary = delete_request_service.run_delete_request_expiry_sweep(
        SessionLocal, max_retries=max_retries
    )
    click.echo(f"✓ Processed {summary['processed']} expired delete requests")
    for result in summary["results"]:
        click.echo(f"  {result['request_id']}: {result['status']}")


@cli.command()
def sync_record_numbers():
    """
    Raise record number sequences past numbers already in the tables.

    Run after importing or restoring records that carry their own numbers.

    Example:
        python -m app.cli sync-record-numbers
    """
    from app.services import record_service

    db = SessionLocal()
    try:
        highest = record_service.sync_record_sequences(db)
    except Exception as e:
        click.echo(f"❌ Sync failed: {e}")
        raise SystemExit(1)
    finally:
        db.close()

    click.echo("✓ Record number sequences synced")
    for record_type, number in highest.items():
        if number:
            click.echo(f"  {record_type}: {number}")


@cli.command()
@click.option("--email", required=True, help="User email")
@click.option("--name", "display_name", required=True, help="Display name")
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role]),
    default=Role.RECRUITER.value,
    show_default=True,
)
def create_user(email: str, display_name: str, role: str):
    """
    Create a user.

    Example:
        python -m app.cli create-user --email "payroll@example.com" --name "Payroll" --role payroll
    """
    from app.db.models import User

    db = SessionLocal()
    try:
        email = email.lower().strip()
        if db.query(User).filter(User.email == email).first():
            click.echo(f"❌ User already exists: {email}")
            return

        user = User(email=email, display_name=display_name, role=role)
        db.add(user)
        db.commit()

        click.echo(f"✓ Created user {email} with role: {role}")
        click.echo(f"  ID: {user.id}")

    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to revoke sessions for")
def revoke_sessions(email: str):
    """
    Revoke all sessions for a user by bumping their token_version.

    Example:
        python -m app.cli revoke-sessions --email "user@example.com"
    """
    from app.db.models import User

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.lower()).first()
        if not user:
            click.echo(f"❌ User not found: {email}")
            return

        old_version = user.token_version
        user.token_version += 1
        db.commit()

        click.echo(f"✓ Revoked all sessions for {email}")
        click.echo(f"  Token version: {old_version} → {user.token_version}")

    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
