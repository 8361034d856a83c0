# votebox/cli.py

import click
from flask import current_app

from votebox.database import db
from votebox.extensions import get_password_service, token_manager
from votebox.security.input_validator import InputValidator
from votebox.services import AccountService


def register_commands(app):
    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command('create-admin')
    @click.option('--aadhar', prompt='Aadhar card number (12 digits)')
    @click.option('--name', prompt='Full name')
    @click.option('--age', prompt='Age', type=int)
    @click.option('--address', prompt='Address')
    @click.password_option()
    def create_admin_command(aadhar, name, age, address, password):
        """Register the single admin account."""
        data = InputValidator().validate_signup({
            'aadharCardNumber': aadhar,
            'name': name,
            'age': age,
            'address': address,
            'role': 'admin',
            'password': password,
        })
        accounts = AccountService(db.session, get_password_service(), token_manager)
        voter, _ = accounts.signup(data)
        current_app.logger.info(f"Admin created: {voter.id}")
        click.echo(f"Admin created with id {voter.id}.")
