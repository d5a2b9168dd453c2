"""CLI tools for portal administration."""

from datetime import date

import click

from insurance_portal.core.config import settings
from insurance_portal.db.base import Base
from insurance_portal.db.enums import FormStatus, InsuranceType, PackageTier, RequestType, Role
from insurance_portal.db.models import Form, InsuranceItem, Organization, User
from insurance_portal.db.session import SessionLocal, engine


@click.group()
def cli():
    """Insurance portal CLI tools."""
    pass


@cli.command("init-db")
def init_db():
    """
    Create all tables on the configured database.

    For local development only; deployed databases are managed by Alembic.
    """
    Base.metadata.create_all(bind=engine)
    click.echo("✓ Tables created")


@cli.command("seed-demo")
@click.option("--org-name", default="Acme Corp", show_default=True, help="Organization name")
@click.option("--client-name", default="John Doe", show_default=True, help="Demo client full name")
@click.option(
    "--client-dob",
    default="1990-01-01",
    show_default=True,
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Demo client date of birth (YYYY-MM-DD)",
)
def seed_demo(org_name: str, client_name: str, client_dob):
    """
    Create a demo organization with an admin, a client and a sample form.

    The admin is the identity the access-key login resolves to, and the
    client can log in with the given name and date of birth.

    Example:
        python -m insurance_portal.cli seed-demo --org-name "Acme Corp"
    """
    dob = client_dob.date()
    db = SessionLocal()
    try:
        if db.query(User).filter(User.email == settings.ADMIN_EMAIL).first():
            click.echo("❌ Admin user already exists, database is already seeded")
            return

        org = Organization(name=org_name)
        db.add(org)
        db.flush()

        admin = User(
            organization_id=org.id,
            email=settings.ADMIN_EMAIL,
            full_name=settings.ADMIN_DISPLAY_NAME,
            role=Role.ADMIN.value,
        )
        client = User(
            organization_id=org.id,
            full_name=client_name,
            date_of_birth=dob,
            role=Role.CLIENT.value,
        )
        db.add_all([admin, client])
        db.flush()

        form = Form(
            organization_id=org.id,
            created_by_user_id=client.id,
            client_name=client_name,
            status=FormStatus.DRAFT.value,
            items=[
                InsuranceItem(
                    insurance_type=InsuranceType.PRIVATE_LIABILITY.value,
                    package=PackageTier.COMFORT.value,
                    request_type=RequestType.NEW_POLICY.value,
                    effective_date=date.today(),
                    duration="1 year",
                    price="150",
                ),
                InsuranceItem(
                    insurance_type=InsuranceType.LEGAL_PROTECTION.value,
                    package=PackageTier.PREMIUM.value,
                    request_type=RequestType.UPGRADE.value,
                    current_policy_number="POL-12345",
                    effective_date=date.today(),
                    duration="1 year",
                    price="200",
                ),
            ],
        )
        db.add(form)
        db.commit()

        click.echo(f"✓ Created organization: {org_name}")
        click.echo(f"  ID: {org.id}")
        click.echo(f"✓ Created admin: {settings.ADMIN_EMAIL}")
        click.echo(f"✓ Created client: {client_name} ({dob.isoformat()})")
        click.echo(f"✓ Created sample form with 2 items: {form.id}")

    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
        raise SystemExit(1)
    finally:
        db.close()


if __name__ == "__main__":
    cli()
