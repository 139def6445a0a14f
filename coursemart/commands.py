import click
from flask.cli import with_appcontext

from coursemart.extensions import db
from coursemart.models import User


@click.command("create-admin")
@click.argument("email")
@click.argument("password")
@click.option("--name", default="Admin", help="Display name for the account.")
@with_appcontext
def create_admin(email, password, name):
    """Create an admin account, or promote an existing user."""
    email = email.strip().lower()
    user = User.query.filter_by(email=email).first()
    if user:
        user.role = "admin"
        click.echo(f"Promoted {email} to admin")
    else:
        user = User(name=name, email=email, role="admin")
        db.session.add(user)
        click.echo(f"Created admin {email}")
    user.set_password(password)
    db.session.commit()
