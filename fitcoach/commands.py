import click
from flask import current_app
from flask.cli import with_appcontext

from fitcoach.extensions import db
from fitcoach.models.user import User


@click.command("create-user")
@click.option("--email", required=True)
@click.option("--name", required=True)
@click.option("--role", type=click.Choice(["admin", "coach", "client"]), default="client", show_default=True)
@click.password_option()
@with_appcontext
def create_user_command(email, name, role, password):
    """Create an active user account."""
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        raise click.ClickException(f"User with email '{email}' already exists.")

    min_length = current_app.config.get("PASSWORD_MIN_LENGTH", 8)
    if len(password) < min_length:
        raise click.ClickException(f"Password must be at least {min_length} characters")

    user = User(email=email, name=name, role=role, status="active")
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    click.echo(f"{role.capitalize()} {email} created with id {user.id}")


def register_commands(app):
    app.cli.add_command(create_user_command)
