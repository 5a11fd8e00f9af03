"""
Unit tests for the mediator exception hierarchy.
"""

from mediator.exceptions import (
    ActorInvocationError,
    ChainStateError,
    ErrorSeverity,
    InvalidActorError,
    InvalidPatternError,
    MediatorError,
    describe_error,
)


class TestExceptionHierarchy:
    """Test builtin compatibility of mediator errors."""

    def test_pattern_error_is_value_error(self):
        error = InvalidPatternError("***", "too many stars")
        assert isinstance(error, MediatorError)
        assert isinstance(error, ValueError)

    def test_actor_error_is_type_error(self):
        assert isinstance(InvalidActorError("fn", "not callable"), TypeError)

    def test_chain_error_is_runtime_error(self):
        assert isinstance(ChainStateError("a"), RuntimeError)


class TestSerialization:
    """Test to_dict and string forms."""

    def test_to_dict(self):
        error = InvalidPatternError("a:***", "three or more consecutive '*' are not allowed")

        data = error.to_dict()

        assert data["error_type"] == "InvalidPatternError"
        assert data["error_code"] == "INVALID_PATTERN"
        assert data["details"]["pattern"] == "a:***"
        assert data["severity"] == ErrorSeverity.WARNING.value

    def test_str_contains_code_and_message(self):
        error = ChainStateError("user:*")
        assert str(error).startswith("[STALE_CHAIN] Cannot act on 'user:*'")

    def test_invocation_error_details(self):
        original = KeyError("id")
        error = ActorInvocationError("order:created", "order:*", "billing.charge", original)

        assert error.original_error is original
        assert error.details["error_type"] == "KeyError"
        assert error.severity is ErrorSeverity.ERROR

    def test_base_error_defaults(self):
        error = MediatorError("misuse")
        assert error.error_code == "MediatorError"
        assert error.details == {}
        assert repr(error) == "MediatorError(message='misuse', details={}, severity='error')"


class TestErrorRendering:
    """Test rendering of third-party exceptions."""

    class Unprintable(Exception):
        def __str__(self):
            raise RuntimeError("cannot render")

    class Unrenderable(Exception):
        def __str__(self):
            raise RuntimeError("cannot render")

        def __repr__(self):
            raise RuntimeError("cannot render either")

    def test_plain_exception(self):
        assert describe_error(KeyError("id")) == "'id'"

    def test_str_failure_falls_back_to_repr(self):
        assert describe_error(self.Unprintable("x")) == "Unprintable('x')"

    def test_repr_failure_falls_back_to_type_name(self):
        assert describe_error(self.Unrenderable()) == "<unprintable Unrenderable>"

    def test_invocation_error_with_unprintable_cause(self):
        error = ActorInvocationError("a", "a", "mod.fn@a", self.Unrenderable())

        assert error.details["error"] == "<unprintable Unrenderable>"
        assert "<unprintable Unrenderable>" in str(error)
