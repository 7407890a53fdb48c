import importlib
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from resource_silo.domain import IContainer, InvalidSpecError, LiteralValue, is_identifier

DependencySource = Union[Tuple[str, Optional[str]], LiteralValue]


def split_class_path(path: str) -> Tuple[str, str]:
    """Split ``"pkg.mod:Class"`` or ``"pkg.mod.Class"`` into module and attribute."""
    if ":" in path:
        module, _, attribute = path.partition(":")
    else:
        module, _, attribute = path.rpartition(".")
    return module, attribute


def parse_dependencies(name: str, dependencies: Optional[Mapping[str, Any]]) -> Dict[str, DependencySource]:
    """Normalize the dependency mapping of a class-based resource.

    Each value may be:
    - ``"resource"``: inject resource ``resource`` without argument;
    - ``True``: inject the resource named like the parameter;
    - ``("resource", "argument")``: inject a parametrized resource;
    - ``LiteralValue(value=...)``: inject ``value`` as is.

    Raises:
        InvalidSpecError: If the mapping or one of its entries is malformed.
    """
    if dependencies is None:
        return {}
    if not isinstance(dependencies, Mapping):
        raise InvalidSpecError(name, "dependencies", "must be a mapping when 'class_' is used")

    parsed: Dict[str, DependencySource] = {}
    for param, source in dependencies.items():
        if not isinstance(param, str) or not param.isidentifier():
            raise InvalidSpecError(name, "dependencies", f"illegal parameter name {param!r}")
        if isinstance(source, LiteralValue):
            parsed[param] = source
            continue
        if source is True:
            source = param
        if isinstance(source, str):
            source = (source, None)
        elif isinstance(source, list):
            source = tuple(source)
        if (
            isinstance(source, tuple)
            and len(source) == 2
            and is_identifier(source[0])
            and (source[1] is None or isinstance(source[1], (str, int, float)))
        ):
            parsed[param] = source
            continue
        raise InvalidSpecError(name, "dependencies", f"illegal source for parameter '{param}': {source!r}")
    return parsed


class ClassInjector:
    """Initializer building an object from named resource values.

    Resolves every dependency through ``container.get`` and passes them as
    keyword arguments to the target class. A dotted path target is imported
    on first use.

    Attributes:
        _target: The class, or its dotted path until resolved.
        _dependencies: Parameter name to dependency source.
    """

    def __init__(self, target: Union[type, str], dependencies: Dict[str, DependencySource]) -> None:
        self._target = target
        self._dependencies = dependencies

    @property
    def dependency_names(self) -> Tuple[str, ...]:
        """Names of the resources this injector requests, in declaration order."""
        names = []
        for source in self._dependencies.values():
            if isinstance(source, LiteralValue):
                continue
            if source[0] not in names:
                names.append(source[0])
        return tuple(names)

    def resolve_target(self) -> Callable[..., Any]:
        """Return the target class, importing it if given by path."""
        if isinstance(self._target, str):
            module, attribute = split_class_path(self._target)
            self._target = getattr(importlib.import_module(module), attribute)
        return self._target

    def __call__(self, container: IContainer, name: str, argument: str) -> Any:
        kwargs = {}
        for param, source in self._dependencies.items():
            if isinstance(source, LiteralValue):
                kwargs[param] = source.value
            else:
                kwargs[param] = container.get(*source)
        return self.resolve_target()(**kwargs)
