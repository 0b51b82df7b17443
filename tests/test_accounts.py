"""Unit tests for authstarr.services.accounts: role username derivation and all-or-nothing registration."""

import unittest

from sqlalchemy.orm import Session, sessionmaker

from authstarr.core.config import Settings
from authstarr.core.database import build_engine
from authstarr.core.errors import DuplicateUsername, InvalidRole
from authstarr.core.security import USERNAME_MAX_LEN
from authstarr.models import Base, User
from authstarr.services.accounts import derive_role_username, local_part, validate_roles
from authstarr.services.auth_service import AuthService
from authstarr.services.store import provision_store


def _session() -> Session:
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False)()


class TestRoleUsernames(unittest.TestCase):
    def test_email_local_part(self) -> None:
        self.assertEqual(local_part("alice@example.com"), "alice")

    def test_plain_username(self) -> None:
        self.assertEqual(local_part("alice"), "alice")

    def test_derived_name(self) -> None:
        self.assertEqual(derive_role_username("alice@example.com", "admin"), "alice_admin")
        self.assertEqual(derive_role_username("bob", "ops"), "bob_ops")


class TestValidateRoles(unittest.TestCase):
    def test_accepts_valid_roles_in_order(self) -> None:
        self.assertEqual(validate_roles(["admin", "ops-team", "read_only"]), ["admin", "ops-team", "read_only"])

    def test_rejects_bad_roles(self) -> None:
        for roles in (["client"], [""], ["admin", "admin"], ["no spaces"], ["a/b"]):
            with self.subTest(roles=roles):
                with self.assertRaises(InvalidRole):
                    validate_roles(roles)


class TestRegisterUser(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = Settings(_env_file=None, DATABASE_URL="sqlite://", BCRYPT_ROUNDS=4)
        self.session = _session()
        provision_store(self.session, self.settings)
        self.service = AuthService(self.session, self.settings)

    def tearDown(self) -> None:
        self.session.close()

    def test_base_account_only(self) -> None:
        user = self.service.register_user("alice", "correct-horse")
        self.assertEqual(user.role, "client")
        self.assertEqual(user.password, "correct-horse")
        self.assertEqual(user.accounts, [])

    def test_role_accounts_created(self) -> None:
        user = self.service.register_user("alice@example.com", "correct-horse", ["admin", "ops"])
        self.assertEqual([a.username for a in user.accounts], ["alice_admin", "alice_ops"])
        self.assertEqual([a.role for a in user.accounts], ["admin", "ops"])
        self.assertTrue(all(a.userid == user.userid for a in user.accounts))
        self.assertNotEqual(user.accounts[0].password, user.accounts[1].password)
        self.assertEqual(self.session.query(User).filter(User.userid == user.userid).count(), 3)

    def test_each_role_account_can_authenticate(self) -> None:
        user = self.service.register_user("alice@example.com", "correct-horse", ["admin", "ops"])
        for account in user.accounts:
            record = self.service.validate_user(account.username, account.password)
            self.assertEqual(record.role, account.role)
            self.assertEqual(record.userid, user.userid)

    def test_users_get_distinct_userids(self) -> None:
        alice = self.service.register_user("alice", "correct-horse", ["admin"])
        bob = self.service.register_user("bob", "correct-horse", ["admin"])
        self.assertNotEqual(alice.userid, bob.userid)

    def test_duplicate_username(self) -> None:
        self.service.register_user("alice", "correct-horse")
        with self.assertRaises(DuplicateUsername):
            self.service.register_user("alice", "other-password")

    def test_failed_role_account_rolls_back_everything(self) -> None:
        # 'alice_ops' is taken, so the second role account cannot be created.
        self.service.register_user("alice_ops", "correct-horse")
        with self.assertRaises(DuplicateUsername):
            self.service.register_user("alice@example.com", "correct-horse", ["admin", "ops"])
        usernames = {u.username for u in self.session.query(User).all()}
        self.assertEqual(usernames, {"alice_ops"})

    def test_invalid_role_creates_nothing(self) -> None:
        with self.assertRaises(InvalidRole):
            self.service.register_user("alice", "correct-horse", ["admin", "client"])
        self.assertEqual(self.session.query(User).count(), 0)

    def test_overlong_role_username_creates_nothing(self) -> None:
        username = "a" * USERNAME_MAX_LEN
        with self.assertRaises(InvalidRole):
            self.service.register_user(username, "correct-horse", ["admin"])
        self.assertEqual(self.session.query(User).count(), 0)

    def test_email_username_at_limit_keeps_short_role_name(self) -> None:
        username = "alice@" + "e" * (USERNAME_MAX_LEN - len("alice@"))
        user = self.service.register_user(username, "correct-horse", ["admin"])
        self.assertEqual(user.accounts[0].username, "alice_admin")


if __name__ == "__main__":
    unittest.main()
