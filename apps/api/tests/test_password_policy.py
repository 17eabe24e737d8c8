"""
Tests for Password Policy Validation

Admin password resets must meet the minimum length and stay within
the bcrypt input limit.
"""
from core.password_policy import validate_password


class TestPasswordValidation:
    """Tests for validate_password function"""

    def test_accepts_minimum_length(self):
        """Should accept a password of exactly the minimum length"""
        valid, errors = validate_password("abc123")
        assert valid is True
        assert errors == []

    def test_reject_short_password(self):
        """Should reject password shorter than 6 characters"""
        valid, errors = validate_password("ab12")
        assert valid is False
        assert any("at least 6 characters" in e for e in errors)

    def test_reject_long_password(self):
        """Should reject password longer than 72 bytes (bcrypt limit)"""
        valid, errors = validate_password("A" * 73)
        assert valid is False
        assert any("72 bytes" in e for e in errors)

    def test_multibyte_characters_count_as_bytes(self):
        valid, _ = validate_password("é" * 40)  # 80 bytes
        assert valid is False

    def test_reject_blank(self):
        valid, errors = validate_password("        ")
        assert valid is False
        assert any("blank" in e for e in errors)
