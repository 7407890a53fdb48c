"""Application layer - Validation of resource declarations."""

import numbers
import re
from typing import Any, Callable, Optional, Tuple

from resource_silo.application.injector import ClassInjector, parse_dependencies, split_class_path
from resource_silo.domain import IContainer, InvalidSpecError, ResourceSpec, accepts_empty, is_identifier

KNOWN_OPTIONS = frozenset(
    {
        "argument",
        "class_",
        "cleanup",
        "cleanup_order",
        "dependencies",
        "derived",
        "fork_cleanup",
        "fork_safe",
        "ignore_cache",
        "literal",
        "post_init",
        "preload",
        "require",
    }
)


def constant(value: Any) -> Callable[[IContainer, str, str], Any]:
    """Wrap a value into an initializer that always returns it."""

    def initializer(container: IContainer, name: str, argument: str) -> Any:
        return value

    return initializer


def _make_validator(name: str, argument: Any) -> Callable[[str], Any]:
    if argument is None:
        return accepts_empty
    if isinstance(argument, str):
        try:
            argument = re.compile(argument)
        except re.error as e:
            raise InvalidSpecError(name, "argument", f"bad regular expression: {e}") from e
    if isinstance(argument, re.Pattern):
        pattern = argument

        def matches(value: str) -> bool:
            return pattern.fullmatch(value) is not None

        return matches
    if callable(argument):
        return argument
    raise InvalidSpecError(name, "argument", "must be a regular expression or a function")


def _dependency_names(name: str, dependencies: Any) -> Optional[Tuple[str, ...]]:
    if dependencies is None:
        return None
    if isinstance(dependencies, (str, bytes)) or not isinstance(dependencies, (list, tuple, set, frozenset)):
        raise InvalidSpecError(name, "dependencies", "must be a list of resource names")
    bad = [dep for dep in dependencies if not is_identifier(dep)]
    if bad:
        raise InvalidSpecError(name, "dependencies", f"illegal dependency name(s): {', '.join(map(repr, bad))}")
    return tuple(dependencies)


def _module_list(name: str, require: Any) -> Tuple[str, ...]:
    if require is None:
        return ()
    if isinstance(require, str):
        require = [require]
    if not isinstance(require, (list, tuple)) or not all(isinstance(m, str) and m for m in require):
        raise InvalidSpecError(name, "require", "must be a module name or a list of module names")
    return tuple(require)


def validate_spec(spec: ResourceSpec) -> ResourceSpec:
    """Check option combinations that no single field can rule out.

    Applies to ready-made specifications as well as those built by
    ``build_spec``.

    Raises:
        InvalidSpecError: If a cleanup option is set on an ``ignore_cache`` resource.
    """
    if spec.ignore_cache:
        for field in ("cleanup", "fork_cleanup", "cleanup_order"):
            if getattr(spec, field):
                raise InvalidSpecError(spec.name, field, "is useless while 'ignore_cache' is in use")
    return spec


def build_spec(name: Any, init: Optional[Callable[..., Any]] = None, **options: Any) -> ResourceSpec:
    """Validate a resource declaration and turn it into a ResourceSpec.

    Args:
        name: Resource identifier.
        init: Initializer receiving (container, name, argument).
        **options: Any of ``KNOWN_OPTIONS``.

    Returns:
        The immutable specification; its ``order`` is stamped by the registry.

    Raises:
        InvalidSpecError: Naming the resource and the offending option.

    Example:
        >>> build_spec("redis", argument=r"session|lock", init=lambda c, n, arg: connect(arg))
    """
    if not is_identifier(name):
        raise InvalidSpecError(name, None, "name must be an identifier")

    extra = sorted(set(options) - KNOWN_OPTIONS)
    if extra:
        raise InvalidSpecError(name, None, f"unknown options: {', '.join(extra)}")

    sources = [key for key in ("init", "literal", "class_") if (init is not None if key == "init" else key in options)]
    if len(sources) > 1:
        raise InvalidSpecError(name, sources[1], f"'{sources[0]}' and '{sources[1]}' are mutually exclusive")
    if not sources:
        raise InvalidSpecError(name, "init", "required unless 'literal' or 'class_' is given")

    derived = bool(options.get("derived", False))
    require = _module_list(name, options.get("require"))

    if init is not None:
        if not callable(init):
            raise InvalidSpecError(name, "init", "must be a function")
        dependencies = _dependency_names(name, options.get("dependencies"))
    elif "literal" in options:
        if options.get("dependencies"):
            raise InvalidSpecError(name, "dependencies", "a literal resource has no dependencies")
        init = constant(options["literal"])
        derived = True
        dependencies = ()
    else:
        target = options["class_"]
        if "argument" in options:
            raise InvalidSpecError(name, "argument", "not supported together with 'class_'")
        if isinstance(target, str):
            module, attribute = split_class_path(target)
            if not module or not attribute:
                raise InvalidSpecError(name, "class_", f"'{target}' is not a dotted class path")
            require += (module,) if module not in require else ()
        elif not isinstance(target, type):
            raise InvalidSpecError(name, "class_", "must be a class or a dotted class path")
        injector = ClassInjector(target, parse_dependencies(name, options.get("dependencies")))
        init = injector
        dependencies = injector.dependency_names

    cleanup_order = options.get("cleanup_order", 0)
    if isinstance(cleanup_order, bool) or not isinstance(cleanup_order, numbers.Real):
        raise InvalidSpecError(name, "cleanup_order", "must be a number")

    for field in ("cleanup", "fork_cleanup", "post_init"):
        value = options.get(field)
        if value is not None and not callable(value):
            raise InvalidSpecError(name, field, "must be a function")

    spec = ResourceSpec(
        name=name,
        init=init,
        argument=_make_validator(name, options.get("argument")),
        cleanup=options.get("cleanup"),
        fork_cleanup=options.get("fork_cleanup"),
        fork_safe=bool(options.get("fork_safe", False)),
        cleanup_order=float(cleanup_order),
        ignore_cache=bool(options.get("ignore_cache", False)),
        derived=derived,
        preload=bool(options.get("preload", False)),
        post_init=options.get("post_init"),
        dependencies=dependencies,
        require=require,
    )
    return validate_spec(spec)
