"""Unit tests for domain enums."""

from resource_silo.domain.enums import EvictionReason


class TestEvictionReason:
    """Test cases for EvictionReason."""

    def test_values(self):
        """Test enum values."""
        assert EvictionReason.TEARDOWN.value == "teardown"
        assert EvictionReason.FORK.value == "fork"
        assert EvictionReason.OVERRIDE.value == "override"

    def test_str_returns_value(self):
        """Test that str() returns the plain value."""
        assert str(EvictionReason.FORK) == "fork"

    def test_is_string_enum(self):
        """Test that members compare equal to their values."""
        assert EvictionReason.TEARDOWN == "teardown"
        assert EvictionReason("override") is EvictionReason.OVERRIDE
