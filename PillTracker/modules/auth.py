"""
This module handles accounts and sign-in for the PillTracker application.

It defines the `AuthService` class, which is responsible for:
- Registering accounts and hashing passwords with a per-account salt.
- Signing users in and out and reporting the current session.
- Resolving whether an identity holds the administrator role.
- Building the `IdentityContext` the tracker works with.

The first account ever registered becomes the administrator; every later
account starts as a standard user until an administrator promotes it.
"""
# pilltracker/modules/auth.py

import hashlib
import logging
import os
import re

from modules.models import IdentityContext, Session, User

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def hash_password(salt: str, password: str) -> str:
    """Hashes a password with its salt using SHA-256."""
    return hashlib.sha256((salt + password).encode()).hexdigest()


class AuthService:
    """Registers accounts and tracks who is signed in."""

    def __init__(self, store):
        """Initializes the service.

        Args:
            store: The `EncryptedJsonStore` holding account records.
        """
        self._store = store
        self.current_user = None

    def _is_strong_password(self, password: str) -> bool:
        """Checks if a password meets the defined strength criteria."""
        if len(password) < 8:
            return False
        has_upper = any(c.isupper() for c in password)
        has_lower = any(c.islower() for c in password)
        has_digit = any(c.isdigit() for c in password)
        has_special = any(not c.isalnum() for c in password)
        return has_upper and has_lower and has_digit and has_special

    def register(self, email, password):
        """Registers a new account.

        Args:
            email (str): The account's email address, used as its identity.
            password (str): The plaintext password.

        Returns:
            str or bool: 'invalid_email', 'weak_password', False if the email is
                         already registered, or True on success.
        """
        email = (email or '').strip().lower()
        if not EMAIL_PATTERN.match(email):
            return 'invalid_email'
        if not self._is_strong_password(password):
            return 'weak_password'
        if self._store.get_user(email):
            return False

        is_first_account = self._store.count_users() == 0
        salt = os.urandom(16).hex()
        user = User(email, hash_password(salt, password), salt, is_admin=is_first_account)
        self._store.save_user(user)
        logger.info("Registered %s account %s", "administrator" if user.is_admin else "standard", email)
        return True

    def login(self, email, password):
        """Signs a user in.

        Returns:
            Session or None: The new session, or None if the credentials are wrong.
        """
        email = (email or '').strip().lower()
        user = self._store.get_user(email)
        if user and user.password_hash == hash_password(user.salt, password):
            self.current_user = user
            return self.current_session()
        logger.info("Failed login for %s", email)
        return None

    def logout(self):
        """Logs out the current user by clearing the session."""
        self.current_user = None

    def current_session(self) -> Session:
        if self.current_user is None:
            return Session(identity=None, authenticated=False)
        return Session(identity=self.current_user.email, authenticated=True)

    def is_administrator(self, identity) -> bool:
        user = self._store.get_user(identity) if identity else None
        return bool(user and user.is_admin)

    def identity_context(self):
        """Returns the `IdentityContext` of the signed-in user, or None."""
        session = self.current_session()
        if not session.authenticated:
            return None
        return IdentityContext(session.identity, self.is_administrator(session.identity))

    def set_administrator(self, email, is_admin) -> bool:
        """Grants or revokes the administrator role of another account.

        Only a signed-in administrator may do this, and never to their own account.

        Returns:
            bool: True if the role was changed.
        """
        if not self.current_user or not self.is_administrator(self.current_user.email):
            return False
        if email == self.current_user.email:
            return False
        user = self._store.get_user(email)
        if not user:
            return False
        user.is_admin = is_admin
        self._store.save_user(user)
        return True
