"""
Account service: opening accounts, login and profile lookups.

Balances are not changed here. Opening an account sets its
starting balance once; every later change goes through the
TransferEngine.
"""

import logging
import secrets
from decimal import Decimal

import bcrypt
from sqlalchemy import select
from sqlalchemy.orm import Session

from aurora_bank.config import get_settings
from aurora_bank.errors import AccountNotFound, AuthenticationFailed
from aurora_bank.models.account import Account
from aurora_bank.schemas.account import MAX_PASSWORD_BYTES, AccountOpen

logger = logging.getLogger(__name__)

ACCOUNT_NUMBER_DIGITS = 12

# Compared against when the email is unknown so that a failed
# login costs the same either way.
_DUMMY_HASH = bcrypt.hashpw(
    b"not-a-real-password", bcrypt.gensalt(get_settings().BCRYPT_ROUNDS)
)


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(get_settings().BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    secret = password.encode("utf-8")
    if len(secret) > MAX_PASSWORD_BYTES:
        # Could never have been hashed, so it cannot match
        return False
    return bcrypt.checkpw(secret, password_hash.encode("ascii"))


class AccountService:

    def __init__(self, db: Session):
        self.db = db

    def _generate_account_number(self) -> str:
        while True:
            # First digit non-zero so the number keeps its length
            candidate = str(secrets.randbelow(9) + 1) + "".join(
                str(secrets.randbelow(10)) for _ in range(ACCOUNT_NUMBER_DIGITS - 1)
            )
            taken = self.db.execute(
                select(Account.id).where(Account.account_number == candidate)
            ).scalar_one_or_none()
            if taken is None:
                return candidate

    def open_account(self, request: AccountOpen) -> Account:
        """
        Open a new account.

        Raises ValueError if the email is already registered.
        The caller controls the commit.
        """
        email = request.email.strip().lower()
        existing = self.db.execute(
            select(Account).where(Account.email == email)
        ).scalar_one_or_none()

        if existing:
            raise ValueError(f"Account with email '{email}' already exists")

        account = Account(
            name=request.name,
            email=email,
            password_hash=hash_password(request.password),
            account_number=self._generate_account_number(),
            balance=request.opening_balance,
        )
        self.db.add(account)
        self.db.flush()
        logger.info("Opened account %s (%s)", account.id, account.account_number)
        return account

    def authenticate(self, email: str, password: str) -> Account:
        """Return the account for valid credentials."""
        account = self.db.execute(
            select(Account).where(Account.email == email.strip().lower())
        ).scalar_one_or_none()

        if account is None:
            verify_password(password, _DUMMY_HASH.decode("ascii"))
            logger.info("Login failed: unknown email")
            raise AuthenticationFailed()

        if not verify_password(password, account.password_hash):
            logger.info("Login failed for account %s", account.id)
            raise AuthenticationFailed()

        logger.info("Login succeeded for account %s", account.id)
        return account

    def get_account(self, account_id: int) -> Account:
        account = self.db.get(Account, account_id)
        if not account:
            raise AccountNotFound(account_id)
        return account

    def get_balance(self, account_id: int) -> Decimal:
        return self.get_account(account_id).balance
