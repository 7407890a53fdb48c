"""Integration tests for complete resource lifecycles."""

import itertools
import sqlite3

import pytest

from resource_silo import (
    CircularDependencyError,
    LiteralValue,
    LockedModeError,
    Registry,
    ResourceContainer,
    TeardownInProgressError,
)


class UserRepository:
    def __init__(self, dbh, table):
        self.dbh = dbh
        self.table = table

    def names(self):
        return [row[0] for row in self.dbh.execute(f"SELECT name FROM {self.table} ORDER BY name")]


def build_app_registry(closed):
    """Registry resembling a small application."""
    registry = Registry()
    registry.add("dsn", literal=":memory:")

    @registry.resource("dbh", dependencies=["dsn"], cleanup=lambda dbh: (closed.append("dbh"), dbh.close()))
    def dbh(container, name, argument):
        connection = sqlite3.connect(container.get("dsn"))
        connection.execute("CREATE TABLE users (name TEXT)")
        connection.executemany("INSERT INTO users VALUES (?)", [("bob",), ("alice",)])
        return connection

    registry.add(
        "users",
        class_=UserRepository,
        derived=True,
        dependencies={"dbh": True, "table": LiteralValue(value="users")},
    )
    registry.add(
        "namespace",
        lambda c, name, ns: f"app:{ns}",
        argument=lambda ns: ns in {"session", "lock"},
        derived=True,
    )
    return registry


class TestApplicationLifecycle:
    """End-to-end scenarios with a real sqlite connection."""

    def test_lazy_initialization_chain(self):
        """Test that fetching a repository builds the whole chain."""
        closed = []
        container = ResourceContainer(build_app_registry(closed))

        assert container.cached("dbh") is None
        assert container.get("users").names() == ["alice", "bob"]
        assert container.cached("dbh") is container.get("users").dbh

    def test_teardown_closes_connection(self):
        """Test that teardown closes the database connection."""
        closed = []
        with ResourceContainer(build_app_registry(closed)) as container:
            dbh = container.get("users").dbh

        assert closed == ["dbh"]
        with pytest.raises(sqlite3.ProgrammingError):
            dbh.execute("SELECT 1")

    def test_locked_tests_with_mocked_dbh(self):
        """Test the lock-and-override testing pattern."""
        closed = []
        mock_dbh = sqlite3.connect(":memory:")
        mock_dbh.execute("CREATE TABLE users (name TEXT)")
        mock_dbh.execute("INSERT INTO users VALUES ('mock')")
        container = ResourceContainer(build_app_registry(closed))
        container.ctl().lock().override(dbh=mock_dbh)

        assert container.get("users").names() == ["mock"]
        assert container.get("namespace", "session") == "app:session"

        container.ctl().clear_overrides()
        assert closed == ["dbh"]
        with pytest.raises(LockedModeError):
            container.get("dbh")

    def test_self_check_and_preload(self):
        """Test that the application registry is consistent."""
        closed = []
        registry = build_app_registry(closed)

        registry.self_check()
        ResourceContainer(registry).ctl().preload()

    def test_independent_containers(self):
        """Test that containers sharing a registry do not share state."""
        counter = itertools.count(1)
        registry = Registry()
        registry.add("counter", lambda c, name, arg: next(counter))
        first = ResourceContainer(registry)
        second = ResourceContainer(registry)

        assert first.get("counter") == 1
        assert second.get("counter") == 2
        first.ctl().cleanup()
        assert second.get("counter") == 2


class TestBootstrap:
    """Scenarios seeding the cache before initialization."""

    def test_initializer_enriches_seeded_object(self):
        """Test the bootstrap pattern of set_cache plus in-place enrichment."""
        registry = Registry()
        registry.add("settings", lambda c, name, arg: {"loaded": True})
        registry.add(
            "plugins",
            lambda c, name, arg: c.get("settings").setdefault("plugins", ["auth"]),
        )
        container = ResourceContainer(registry)
        settings = {"loaded": False}
        container.ctl().set_cache(settings=[settings])

        container.get("plugins")

        assert container.get("settings") is settings
        assert settings == {"loaded": False, "plugins": ["auth"]}


class TestFailureRollback:
    """Scenarios where initialization fails midway."""

    def test_failed_dependency_leaves_cache_clean(self):
        """Test that a failure deep in the chain caches nothing above it."""
        attempts = []

        def flaky(container, name, argument):
            attempts.append(name)
            if len(attempts) == 1:
                raise ConnectionError("first attempt fails")
            return "connected"

        registry = Registry()
        registry.add("conn", flaky)
        registry.add("service", lambda c, name, arg: ("service", c.get("conn")))
        container = ResourceContainer(registry)

        with pytest.raises(ConnectionError):
            container.get("service")
        assert container.cached("service") is None
        assert container.cached("conn") is None

        assert container.get("service") == ("service", "connected")

    def test_cycle_is_not_retried(self):
        """Test that a cycle fails again on the next attempt."""
        registry = Registry()
        registry.add("a", lambda c, name, arg: c.get("b"))
        registry.add("b", lambda c, name, arg: c.get("c"))
        registry.add("c", lambda c, name, arg: c.get("a"))
        container = ResourceContainer(registry)

        for _ in range(2):
            with pytest.raises(CircularDependencyError) as exc_info:
                container.get("b")
            assert exc_info.value.pending == ["a", "b", "c"]

    def test_teardown_refuses_ignore_cache(self):
        """Test that uncached resources are also refused after teardown."""
        registry = Registry()
        registry.add("stamp", lambda c, name, arg: object(), ignore_cache=True)
        container = ResourceContainer(registry)
        container.get("stamp")

        container.ctl().cleanup()

        with pytest.raises(TeardownInProgressError):
            container.get("stamp")
