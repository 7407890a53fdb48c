"""Unit tests for build_spec."""

import re

import pytest

from resource_silo.application.injector import ClassInjector
from resource_silo.application.spec_builder import build_spec, constant
from resource_silo.domain import InvalidSpecError, LiteralValue, ResourceSpec


def _init(container, name, argument):
    return name


class Connection:
    def __init__(self, dsn):
        self.dsn = dsn


class TestBasicDeclaration:
    """Test cases for plain init-based declarations."""

    def test_returns_resource_spec(self):
        """Test that a minimal declaration builds a spec."""
        spec = build_spec("dbh", _init)

        assert isinstance(spec, ResourceSpec)
        assert spec.name == "dbh"
        assert spec.init is _init
        assert spec.accepts("")
        assert not spec.accepts("x")

    def test_flags_are_copied(self):
        """Test that boolean flags and callbacks end up in the spec."""
        cleanup = lambda value: None  # noqa: E731
        spec = build_spec(
            "dbh",
            _init,
            cleanup=cleanup,
            cleanup_order=-5,
            fork_safe=True,
            derived=True,
            preload=True,
        )

        assert spec.cleanup is cleanup
        assert spec.cleanup_order == -5
        assert spec.fork_safe is True
        assert spec.derived is True
        assert spec.preload is True

    def test_dependencies_and_require(self):
        """Test declared dependencies and required modules."""
        spec = build_spec("dbh", _init, dependencies=["config"], require="json")

        assert spec.dependencies == ("config",)
        assert spec.require == ("json",)

    def test_undeclared_dependencies_are_none(self):
        """Test that omitted dependencies stay undeclared."""
        assert build_spec("dbh", _init).dependencies is None


class TestInvalidDeclarations:
    """Test cases for rejected declarations."""

    @pytest.mark.parametrize("name", ["", "2x", "with-dash", None, 5])
    def test_bad_name(self, name):
        """Test that names must be identifiers."""
        with pytest.raises(InvalidSpecError, match="identifier"):
            build_spec(name, _init)

    def test_unknown_options(self):
        """Test that unknown option keys are rejected."""
        with pytest.raises(InvalidSpecError, match="unknown options: bogus, colour") as exc_info:
            build_spec("dbh", _init, colour="red", bogus=1)

        assert exc_info.value.name == "dbh"

    def test_init_required(self):
        """Test that init is required without literal or class_."""
        with pytest.raises(InvalidSpecError) as exc_info:
            build_spec("dbh")

        assert exc_info.value.field == "init"

    def test_init_must_be_callable(self):
        """Test that a non-callable init is rejected."""
        with pytest.raises(InvalidSpecError, match="must be a function"):
            build_spec("dbh", "not a function")

    def test_init_and_literal_are_exclusive(self):
        """Test that init and literal cannot be combined."""
        with pytest.raises(InvalidSpecError, match="mutually exclusive") as exc_info:
            build_spec("dbh", _init, literal=42)

        assert exc_info.value.field == "literal"

    def test_init_and_class_are_exclusive(self):
        """Test that init and class_ cannot be combined."""
        with pytest.raises(InvalidSpecError, match="mutually exclusive"):
            build_spec("dbh", _init, class_=Connection)

    def test_bad_argument_validator(self):
        """Test that argument must be a regex or a function."""
        with pytest.raises(InvalidSpecError) as exc_info:
            build_spec("redis", _init, argument=42)

        assert exc_info.value.field == "argument"

    def test_bad_regex(self):
        """Test that an uncompilable regex is rejected."""
        with pytest.raises(InvalidSpecError, match="bad regular expression"):
            build_spec("redis", _init, argument="(unclosed")

    @pytest.mark.parametrize("field", ["cleanup", "fork_cleanup", "post_init"])
    def test_callbacks_must_be_callable(self, field):
        """Test that cleanup-like options must be functions."""
        with pytest.raises(InvalidSpecError) as exc_info:
            build_spec("dbh", _init, **{field: "nope"})

        assert exc_info.value.field == field

    @pytest.mark.parametrize("order", ["5", None, True, [1]])
    def test_cleanup_order_must_be_number(self, order):
        """Test that cleanup_order must be numeric."""
        with pytest.raises(InvalidSpecError) as exc_info:
            build_spec("dbh", _init, cleanup_order=order)

        assert exc_info.value.field == "cleanup_order"

    @pytest.mark.parametrize(
        "options",
        [
            {"cleanup": lambda value: None},
            {"fork_cleanup": lambda value: None},
            {"cleanup_order": 10},
        ],
    )
    def test_cleanup_with_ignore_cache(self, options):
        """Test that cleanup options are useless with ignore_cache."""
        with pytest.raises(InvalidSpecError, match="ignore_cache"):
            build_spec("counter", _init, ignore_cache=True, **options)

    def test_dependencies_must_be_list(self):
        """Test that dependencies must be a list of names."""
        with pytest.raises(InvalidSpecError, match="list of resource names"):
            build_spec("dbh", _init, dependencies="config")

    def test_dependencies_must_be_identifiers(self):
        """Test that dependency names must be identifiers."""
        with pytest.raises(InvalidSpecError, match="illegal dependency name"):
            build_spec("dbh", _init, dependencies=["config", "bad-name"])

    def test_require_must_be_names(self):
        """Test that require must be a module name or list of names."""
        with pytest.raises(InvalidSpecError) as exc_info:
            build_spec("dbh", _init, require=42)

        assert exc_info.value.field == "require"


class TestArgumentValidators:
    """Test cases for argument validators."""

    def test_string_regex_is_anchored(self):
        """Test that a string regex must match the whole argument."""
        spec = build_spec("fib", _init, argument=r"\d+")

        assert spec.accepts("42")
        assert not spec.accepts("42a")
        assert not spec.accepts("a42")

    def test_compiled_regex(self):
        """Test that compiled patterns are accepted and anchored."""
        spec = build_spec("redis", _init, argument=re.compile("session|lock"))

        assert spec.accepts("session")
        assert spec.accepts("lock")
        assert not spec.accepts("sessionlock")

    def test_predicate(self):
        """Test that a function validator is used as is."""
        known = {"user", "session"}
        spec = build_spec("redis", _init, argument=lambda arg: arg in known)

        assert spec.accepts("user")
        assert not spec.accepts("")


class TestLiteral:
    """Test cases for literal resources."""

    def test_literal_returns_value(self):
        """Test that a literal init returns the given value."""
        spec = build_spec("config_file", literal="/etc/app.yaml")

        assert spec.init(None, "config_file", "") == "/etc/app.yaml"

    def test_literal_is_derived_without_dependencies(self):
        """Test that literals are derived and have no dependencies."""
        spec = build_spec("config_file", literal=None)

        assert spec.derived is True
        assert spec.dependencies == ()

    def test_literal_with_dependencies_rejected(self):
        """Test that literals may not declare dependencies."""
        with pytest.raises(InvalidSpecError, match="no dependencies"):
            build_spec("config_file", literal=1, dependencies=["x"])


class TestClassDeclaration:
    """Test cases for class-based declarations."""

    def test_class_builds_injector(self):
        """Test that class_ produces a ClassInjector init."""
        spec = build_spec(
            "conn",
            class_=Connection,
            dependencies={"dsn": "dsn_value", "timeout": LiteralValue(value=3)},
        )

        assert isinstance(spec.init, ClassInjector)
        assert spec.dependencies == ("dsn_value",)

    def test_class_path_adds_module_to_require(self):
        """Test that a dotted class path requires its module."""
        spec = build_spec("decoder", class_="json:JSONDecoder")

        assert spec.require == ("json",)
        assert spec.dependencies == ()

    def test_class_path_without_module(self):
        """Test that a bare class name is rejected."""
        with pytest.raises(InvalidSpecError, match="dotted class path"):
            build_spec("decoder", class_="JSONDecoder")

    def test_class_must_be_class(self):
        """Test that class_ must be a class or path."""
        with pytest.raises(InvalidSpecError) as exc_info:
            build_spec("decoder", class_=42)

        assert exc_info.value.field == "class_"

    def test_class_with_argument_rejected(self):
        """Test that class_ forbids argument."""
        with pytest.raises(InvalidSpecError, match="not supported"):
            build_spec("conn", class_=Connection, argument=r"\w+")

    def test_class_dependencies_must_be_mapping(self):
        """Test that class_ requires dependencies to be a mapping."""
        with pytest.raises(InvalidSpecError, match="mapping"):
            build_spec("conn", class_=Connection, dependencies=["dsn"])


class TestConstant:
    """Test cases for the constant helper."""

    def test_constant_ignores_arguments(self):
        """Test that constant initializers ignore their arguments."""
        marker = object()
        init = constant(marker)

        assert init(None, "any", "thing") is marker
