# SPDX-License-Identifier: Apache-2.0

"""
In-memory identity store.

Resolves account references to "exists / does not exist" for the consent
core and handles registration and password login. Accounts live for the
lifetime of the process.
"""

import threading
from typing import Dict, Optional
from opentelemetry import trace
import logging

from geolink.models.entities import Account
from geolink.services.auth import AuthService
from geolink.middleware.error_handler import AuthenticationException, ConflictException

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class IdentityStore:
    """Registered accounts keyed by their (case-sensitive) email."""

    def __init__(self, auth_service: AuthService):
        self.auth_service = auth_service
        self._accounts: Dict[str, Account] = {}
        self._lock = threading.Lock()

    def register(self, email: str, password: str) -> Account:
        """
        Register a new account.

        Args:
            email: Account reference
            password: Plain text password, stored as a bcrypt hash

        Returns:
            The created account

        Raises:
            ConflictException: If the email is already registered
        """
        with tracer.start_as_current_span("identity.register") as span:
            span.set_attribute("account.email", email)

            # bcrypt runs outside the lock
            account = Account(email=email, password_hash=self.auth_service.hash_password(password))

            with self._lock:
                if email in self._accounts:
                    span.set_attribute("identity.result", "conflict")
                    raise ConflictException("Email already registered")
                self._accounts[email] = account

            span.set_attribute("identity.result", "created")
            logger.info("Account registered", extra={"account": email})
            return account

    def authenticate(self, email: str, password: str) -> Account:
        """
        Check credentials and return the matching account.

        Raises:
            AuthenticationException: If the email is unknown or the password is wrong
        """
        with tracer.start_as_current_span("identity.authenticate") as span:
            span.set_attribute("account.email", email)

            account = self.get(email)
            if account is None or not self.auth_service.verify_password(password, account.password_hash):
                span.set_attribute("identity.result", "invalid_credentials")
                logger.warning("Login failed", extra={"account": email})
                raise AuthenticationException("Invalid credentials")

            span.set_attribute("identity.result", "authenticated")
            return account

    def get(self, email: str) -> Optional[Account]:
        """Look up an account by reference."""
        with self._lock:
            return self._accounts.get(email)

    def account_exists(self, email: Optional[str]) -> bool:
        """Whether ``email`` is a registered account reference."""
        if not email:
            return False
        with self._lock:
            return email in self._accounts

    def account_count(self) -> int:
        """Number of registered accounts."""
        with self._lock:
            return len(self._accounts)
