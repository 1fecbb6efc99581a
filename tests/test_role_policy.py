"""Unit tests for app.services.role_policy: the role hierarchy for admin actions and invites."""

import unittest

from app.services import role_policy
from app.services.errors import BadRequest, Forbidden


class TestTiers(unittest.TestCase):
    def test_elevated(self) -> None:
        self.assertTrue(role_policy.is_elevated("admin"))
        self.assertTrue(role_policy.is_elevated("moderator"))
        self.assertFalse(role_policy.is_elevated("staff"))
        self.assertFalse(role_policy.is_elevated("joueur"))
        self.assertFalse(role_policy.is_elevated(None))

    def test_invite_capable_widens_elevated(self) -> None:
        for role in ("admin", "moderator", "staff"):
            self.assertTrue(role_policy.is_invite_capable(role))
        self.assertFalse(role_policy.is_invite_capable("joueur"))
        self.assertFalse(role_policy.is_invite_capable(None))


class TestCheckDelete(unittest.TestCase):
    def test_self_delete_is_bad_request(self) -> None:
        with self.assertRaises(BadRequest):
            role_policy.check_delete("root", "admin", "root", "admin")

    def test_moderator_cannot_delete_admin_or_moderator(self) -> None:
        for target_role in ("admin", "moderator"):
            with self.subTest(target_role=target_role):
                with self.assertRaises(Forbidden):
                    role_policy.check_delete("mod", "moderator", "other", target_role)

    def test_moderator_can_delete_lower_roles(self) -> None:
        role_policy.check_delete("mod", "moderator", "p", "joueur")
        role_policy.check_delete("mod", "moderator", "s", "staff")

    def test_admin_can_delete_anyone_else(self) -> None:
        for target_role in ("admin", "moderator", "staff", "joueur"):
            role_policy.check_delete("root", "admin", "other", target_role)


class TestCheckRoleChange(unittest.TestCase):
    def test_self_change_is_bad_request(self) -> None:
        with self.assertRaises(BadRequest):
            role_policy.check_role_change("root", "admin", "root", "admin", "joueur")

    def test_moderator_cannot_modify_admin_or_moderator(self) -> None:
        for target_role in ("admin", "moderator"):
            with self.subTest(target_role=target_role):
                with self.assertRaises(Forbidden):
                    role_policy.check_role_change("mod", "moderator", "x", target_role, "joueur")

    def test_moderator_cannot_promote_to_admin(self) -> None:
        for target_role in ("staff", "joueur"):
            with self.subTest(target_role=target_role):
                with self.assertRaises(Forbidden):
                    role_policy.check_role_change("mod", "moderator", "x", target_role, "admin")

    def test_moderator_may_grant_staff_and_moderator(self) -> None:
        role_policy.check_role_change("mod", "moderator", "x", "joueur", "staff")
        role_policy.check_role_change("mod", "moderator", "x", "staff", "moderator")

    def test_admin_can_change_anyone_else(self) -> None:
        role_policy.check_role_change("root", "admin", "x", "admin", "joueur")
        role_policy.check_role_change("root", "admin", "x", "joueur", "admin")


class TestInviteRole(unittest.TestCase):
    def test_staff_always_gets_lowest_role(self) -> None:
        for requested in (None, "joueur", "staff", "moderator", "admin"):
            self.assertEqual(role_policy.invite_role_for("staff", requested), "joueur")

    def test_default_is_lowest_role(self) -> None:
        self.assertEqual(role_policy.invite_role_for("admin", None), "joueur")

    def test_admin_may_invite_any_role(self) -> None:
        self.assertEqual(role_policy.invite_role_for("admin", "admin"), "admin")
        self.assertEqual(role_policy.invite_role_for("admin", "moderator"), "moderator")

    def test_moderator_cannot_invite_admin(self) -> None:
        with self.assertRaises(Forbidden):
            role_policy.invite_role_for("moderator", "admin")
        self.assertEqual(role_policy.invite_role_for("moderator", "staff"), "staff")


class TestManageableInviteRoles(unittest.TestCase):
    def test_matches_what_each_role_can_mint(self) -> None:
        self.assertEqual(
            role_policy.manageable_invite_roles("admin"),
            {"admin", "moderator", "staff", "joueur"},
        )
        self.assertNotIn("admin", role_policy.manageable_invite_roles("moderator"))
        self.assertIn("moderator", role_policy.manageable_invite_roles("moderator"))
        self.assertEqual(role_policy.manageable_invite_roles("staff"), {"joueur"})

    def test_non_privileged_roles_see_nothing(self) -> None:
        self.assertEqual(role_policy.manageable_invite_roles("joueur"), frozenset())
        self.assertEqual(role_policy.manageable_invite_roles(None), frozenset())


if __name__ == "__main__":
    unittest.main()
