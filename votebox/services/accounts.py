# votebox/services/accounts.py

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from votebox.authentication.rbac import Role
from votebox.database import storage_guard
from votebox.database.models import Voter
from votebox.errors import DuplicateVoter, InvalidCredentials, ValidationError, VoterNotFound

logger = logging.getLogger(__name__)


class AccountService:
    """Signup, login and credential changes for voters and the admin."""

    def __init__(self, session, password_service, token_manager):
        self.session = session
        self.passwords = password_service
        self.tokens = token_manager

    def signup(self, data):
        try:
            role = Role(data.get('role') or Role.VOTER.value)
        except ValueError:
            raise ValidationError("Role must be 'voter' or 'admin'")

        with storage_guard(self.session):
            if role is Role.ADMIN and self._admin_exists():
                raise ValidationError("Admin user already exists")
            if self._find(data['national_id']) is not None:
                raise DuplicateVoter()

            voter = Voter(
                national_id=data['national_id'],
                name=data['name'],
                age=data['age'],
                email=data.get('email'),
                mobile=data.get('mobile'),
                address=data['address'],
                role=role,
                password_hash=self.passwords.hash_password(data['password']),
                has_voted=False,
            )
            self.session.add(voter)
            try:
                self.session.commit()
            except IntegrityError:
                self.session.rollback()
                raise DuplicateVoter()

        logger.info("Voter registered: %s (%s)", voter.id, role.value)
        return voter, self.tokens.generate_token(voter)

    def login(self, national_id, password):
        if not national_id or not password:
            raise ValidationError("Aadhar card number and password are required")
        with storage_guard(self.session):
            voter = self._find(str(national_id))
        if voter is None or not self.passwords.verify_password(password, voter.password_hash):
            raise InvalidCredentials()
        if self.passwords.needs_rehash(voter.password_hash):
            with storage_guard(self.session):
                voter.password_hash = self.passwords.hash_password(password)
                self.session.commit()
            logger.info("Upgraded password hash for voter %s", voter.id)
        return voter, self.tokens.generate_token(voter)

    def profile(self, identity):
        with storage_guard(self.session):
            voter = self.session.get(Voter, identity.voter_id)
        if voter is None:
            raise VoterNotFound()
        return voter

    def change_password(self, identity, current_password, new_password):
        if not current_password or not new_password:
            raise ValidationError("Both currentPassword and newPassword are required")
        voter = self.profile(identity)
        if not self.passwords.verify_password(current_password, voter.password_hash):
            raise InvalidCredentials("Invalid current password")
        with storage_guard(self.session):
            voter.password_hash = self.passwords.hash_password(new_password)
            self.session.commit()
        logger.info("Password updated for voter %s", voter.id)

    def _find(self, national_id):
        return self.session.scalars(select(Voter).where(Voter.national_id == national_id)).first()

    def _admin_exists(self):
        return self.session.scalars(select(Voter.id).where(Voter.role == Role.ADMIN)).first() is not None
