"""Tests for account rules."""

from proctrack.services.user_validation import password_problems, validate_user

DOMAIN = "gmail.com"


class TestValidateUser:

    def test_valid_user_passes(self):
        result = validate_user("Maria Santos", "Valid1!@gmail.com", "Abc12345!", DOMAIN)
        assert result.ok
        assert result.reasons == ()

    def test_wrong_domain_fails(self):
        result = validate_user("A", "a@other.com", "Abc12345!", DOMAIN)
        assert not result.ok
        assert result.reasons == ("Email must be a '@gmail.com' address",)

    def test_domain_check_ignores_case(self):
        assert validate_user("A", "Someone@GMAIL.com", "Abc12345!", DOMAIN).ok

    def test_bare_domain_is_not_an_address(self):
        assert not validate_user("A", "@gmail.com", "Abc12345!", DOMAIN).ok

    def test_every_failure_is_reported(self):
        result = validate_user("", "", "", DOMAIN)
        assert result.reasons == ("Name is required", "Email is required", "Password is required")

    def test_password_optional_on_edit(self):
        assert validate_user("A", "a@gmail.com", None, DOMAIN, require_password=False).ok

    def test_supplied_password_still_checked_on_edit(self):
        result = validate_user("A", "a@gmail.com", "weak", DOMAIN, require_password=False)
        assert not result.ok


class TestPasswordProblems:

    def test_strong_password(self):
        assert password_problems("Abc12345!") == []

    def test_messages(self):
        assert password_problems("abc") == [
            "Password must be at least 8 characters long",
            "Password must contain at least one uppercase letter",
            "Password must contain at least one number",
            "Password must contain at least one special character",
        ]

    def test_missing_number_only(self):
        assert password_problems("Abcdefgh!") == ["Password must contain at least one number"]
