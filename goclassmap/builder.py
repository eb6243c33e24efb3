"""
Model builder.

Consumes the declarations of each scanned package and populates a
:class:`~goclassmap.model.Registry`: imports feed the namespace-alias table,
struct/interface/other type declarations create classifiers and aliases, and
receiver methods attach to their record.
"""
from __future__ import annotations

import logging
from typing import FrozenSet, Iterable, List, Optional, Set

from . import nodes
from .model import (
    ALIAS,
    INTERFACE,
    RECORD,
    Alias,
    Classifier,
    ClassifierKind,
    Field,
    Method,
    Parameter,
    Registry,
)
from .relations import resolve_relationships
from .typeexpr import (
    BUILTIN_NAMESPACE,
    PACKAGE_PLACEHOLDER,
    basic_type,
    is_primitive,
    replace_placeholder,
    resolve_type,
)

__all__ = ["ModelBuilder", "build_model"]

logger = logging.getLogger(__name__)


class ModelBuilder:
    """
    Walks declarations namespace by namespace.

    One builder (and one registry) per build; nothing is shared between runs.
    """

    def __init__(self, registry: Optional[Registry] = None) -> None:
        self.registry = registry if registry is not None else Registry()
        self.namespace = ""
        self._type_params: FrozenSet[str] = frozenset()
        self._lineno = 0

    # --- entry points ----------------------------------------------------

    def add_package(self, package: nodes.Package) -> None:
        self.namespace = package.namespace
        self.registry.classifiers.setdefault(package.namespace, {})
        logger.debug("Building namespace %s (%d files)", package.namespace, len(package.files))
        for source in sorted(package.files, key=lambda f: f.path.name):
            self.add_file(source)

    def add_file(self, source: nodes.SourceFile) -> None:
        for spec in source.imports:
            self.handle_import(spec)
        for decl in source.decls:
            if isinstance(decl, nodes.TypeSpec):
                self.handle_type_spec(decl)
            elif isinstance(decl, nodes.FuncDecl):
                self.handle_func_decl(decl)

    # --- imports ---------------------------------------------------------

    def handle_import(self, spec: nodes.ImportSpec) -> None:
        if spec.name in ("_", "."):
            logger.debug("Skipping %r import of %s", spec.name, spec.path)
            return
        dotted = spec.path.replace("/", ".")
        local = spec.name or spec.path.rsplit("/", 1)[-1]
        self.registry.add_import(local, dotted)

    # --- methods ---------------------------------------------------------

    def handle_func_decl(self, decl: nodes.FuncDecl) -> None:
        """Attach a receiver method to its record; plain functions are ignored."""
        if decl.receiver is None:
            return
        display = resolve_type(decl.receiver.type, self.registry.imports).display
        type_name = replace_placeholder(display, "").strip("*.")
        if not type_name or "." in type_name:
            logger.warning(
                "Cannot attach method %s (line %d) to receiver type %r", decl.name, decl.lineno, display
            )
            return
        classifier = self.registry.get_or_create(self.namespace, type_name)
        classifier.claim_kind(RECORD, provisional=True)
        classifier.add_method(self.build_method(decl.name, decl.type))

    def build_method(self, name: str, func: nodes.FuncType) -> Method:
        imports = self.registry.imports
        parameters: List[Parameter] = []
        for param in func.params:
            display = resolve_type(param.type, imports).display
            for param_name in param.names or ("",):
                parameters.append(
                    Parameter(
                        name=param_name,
                        type=replace_placeholder(display, ""),
                        full_type=replace_placeholder(display, self.namespace),
                    )
                )
        returns: List[str] = []
        full_returns: List[str] = []
        for result in func.results:
            display = resolve_type(result.type, imports).display
            for _ in result.names or ("",):
                returns.append(replace_placeholder(display, ""))
                full_returns.append(replace_placeholder(display, self.namespace))
        return Method(name=name, parameters=parameters, returns=returns, full_returns=full_returns)

    # --- type declarations -----------------------------------------------

    def handle_type_spec(self, spec: nodes.TypeSpec) -> None:
        logger.debug(
            "Type %s.%s at line %d%s",
            self.namespace,
            spec.name,
            spec.lineno,
            " (alias declaration)" if spec.is_alias else "",
        )
        self._type_params = frozenset(spec.type_params)
        self._lineno = spec.lineno
        try:
            if isinstance(spec.type, nodes.StructType):
                self._handle_struct(spec.name, spec.type)
            elif isinstance(spec.type, nodes.InterfaceType):
                self._handle_interface(spec.name, spec.type)
            else:
                self._handle_alias(spec.name, spec.type)
        finally:
            self._type_params = frozenset()

    def _handle_struct(self, name: str, struct: nodes.StructType) -> None:
        classifier = self._declare(name, RECORD)
        for entry in struct.fields:
            resolved = resolve_type(entry.type, self.registry.imports)
            if not resolved.display:
                logger.debug("Skipping field %s of %s: unsupported type", entry.names, name)
                continue
            if not entry.names:
                classifier.add_to_composition(replace_placeholder(resolved.display, self.namespace))
                continue
            dependencies = self._qualify(resolved.dependencies)
            for field_name in entry.names:
                classifier.add_field(
                    Field(
                        name=field_name,
                        type=replace_placeholder(resolved.display, ""),
                        full_type=replace_placeholder(resolved.display, self.namespace),
                        dependencies=dependencies,
                    )
                )

    def _handle_interface(self, name: str, interface: nodes.InterfaceType) -> None:
        classifier = self._declare(name, INTERFACE)
        for member in interface.members:
            if member.names and isinstance(member.type, nodes.FuncType):
                classifier.add_method(self.build_method(member.names[0], member.type))
            elif not member.names and isinstance(member.type, (nodes.Ident, nodes.Selector)):
                display = resolve_type(member.type, self.registry.imports).display
                classifier.add_to_composition(replace_placeholder(display, self.namespace))

    def _handle_alias(self, name: str, expr: nodes.TypeExpr) -> None:
        classifier = self._declare(name, ALIAS)
        imports = self.registry.imports
        display = replace_placeholder(resolve_type(expr, imports).display, "")
        if not display:
            logger.debug("Alias %s.%s has an unsupported underlying type", self.namespace, name)
            return
        basic = resolve_type(basic_type(expr), imports).display
        underlying_namespace = BUILTIN_NAMESPACE if is_primitive(basic) else self.namespace
        alias = Alias(
            name=name,
            namespace=classifier.namespace,
            underlying=f"{underlying_namespace}.{display}",
            underlying_namespace=underlying_namespace,
        )
        self.registry.add_alias(alias)

    # --- helpers ---------------------------------------------------------

    def _declare(self, name: str, kind: ClassifierKind) -> Classifier:
        classifier = self.registry.get_or_create(self.namespace, name)
        if not classifier.claim_kind(kind):
            logger.debug(
                "%s at line %d already declared as %s; keeping it",
                classifier.qualified_name,
                self._lineno,
                classifier.kind,
            )
        return classifier

    def _qualify(self, dependencies: Iterable[str]) -> FrozenSet[str]:
        """Qualify placeholder dependencies, dropping the declaration's type parameters."""
        qualified: Set[str] = set()
        prefix = PACKAGE_PLACEHOLDER + "."
        for dependency in dependencies:
            if dependency.startswith(prefix) and dependency[len(prefix):] in self._type_params:
                continue
            qualified.add(replace_placeholder(dependency, self.namespace))
        return frozenset(qualified)


def build_model(packages: Iterable[nodes.Package]) -> Registry:
    """
    Build a finished registry from scanned packages.

    Packages are processed in the given order; structural interface
    satisfaction and synthetic alias-target names are resolved once every
    declaration has been seen.
    """
    builder = ModelBuilder()
    for package in packages:
        builder.add_package(package)
    registry = builder.registry
    resolve_relationships(registry)
    registry.rename_alias_targets()
    logger.info(
        "Built model: %d namespaces, %d classifiers, %d aliases",
        len(registry.classifiers),
        sum(len(members) for members in registry.classifiers.values()),
        len(registry.aliases),
    )
    return registry
