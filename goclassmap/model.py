"""
Object model: classifiers, their members, aliases and the registry that owns
them for the duration of one build.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterator, List, Literal, Optional, Set, Tuple

from .typeexpr import BUILTIN_NAMESPACE, PRIMITIVES, is_exported

__all__ = [
    "ClassifierKind",
    "RECORD",
    "INTERFACE",
    "ALIAS",
    "Field",
    "Parameter",
    "Method",
    "Classifier",
    "Alias",
    "Registry",
    "synthesize_identifier",
]

ClassifierKind = Literal["", "record", "interface", "alias"]

RECORD: ClassifierKind = "record"
INTERFACE: ClassifierKind = "interface"
ALIAS: ClassifierKind = "alias"

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]+")


@dataclass
class Field:
    """
    A named struct field.

    - type         : display type (local references unqualified)
    - full_type    : type with every reference namespace-qualified
    - dependencies : qualified names of the named types the field refers to
    """

    name: str
    type: str
    full_type: str
    dependencies: FrozenSet[str] = frozenset()

    @property
    def exported(self) -> bool:
        return is_exported(self.name)


@dataclass(frozen=True)
class Parameter:
    name: str
    type: str
    full_type: str


@dataclass
class Method:
    name: str
    parameters: List[Parameter] = field(default_factory=list)
    returns: List[str] = field(default_factory=list)
    full_returns: List[str] = field(default_factory=list)

    @property
    def exported(self) -> bool:
        return is_exported(self.name)

    def signature_matches(self, other: "Method") -> bool:
        """Same name, same ordered parameter types and same ordered result types."""
        return (
            self.name == other.name
            and [p.full_type for p in self.parameters] == [p.full_type for p in other.parameters]
            and self.full_returns == other.full_returns
        )


@dataclass
class Classifier:
    """
    A named type declared in a namespace.

    ``composition`` holds anonymously embedded types, ``extends`` the interfaces
    the classifier satisfies, ``aggregations``/``private_aggregations`` the types
    referenced by exported/non-exported named fields.  All targets are
    namespace-qualified names.
    """

    namespace: str
    name: str
    kind: ClassifierKind = ""
    fields: List[Field] = field(default_factory=list)
    methods: List[Method] = field(default_factory=list)
    composition: Set[str] = field(default_factory=set)
    extends: Set[str] = field(default_factory=set)
    aggregations: Set[str] = field(default_factory=set)
    private_aggregations: Set[str] = field(default_factory=set)
    kind_is_provisional: bool = False

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    def claim_kind(self, kind: ClassifierKind, provisional: bool = False) -> bool:
        """
        Assign ``kind`` unless a declaration already did.

        A provisional kind (inferred from a method receiver) may later be
        replaced by the type declaration's own kind; a declared kind is final.
        Returns True when the kind was assigned.
        """
        if self.kind and not (self.kind_is_provisional and not provisional):
            return False
        self.kind = kind
        self.kind_is_provisional = provisional
        return True

    def add_field(self, new_field: Field) -> None:
        self.fields.append(new_field)
        target = self.aggregations if new_field.exported else self.private_aggregations
        target.update(new_field.dependencies)

    def add_method(self, method: Method) -> None:
        self.methods.append(method)

    def add_to_composition(self, target: str) -> None:
        target = _strip_pointer(target)
        if target:
            self.composition.add(target)

    def add_to_extends(self, target: str) -> None:
        target = _strip_pointer(target)
        if target:
            self.extends.add(target)


@dataclass(frozen=True)
class Alias:
    """
    ``type Name Underlying`` for anything that is not a struct or interface.

    ``underlying`` is ``<underlying_namespace>.<display>``; the namespace is
    :data:`BUILTIN_NAMESPACE` when the unwrapped basic type is primitive.
    """

    name: str
    namespace: str
    underlying: str
    underlying_namespace: str

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    @property
    def underlying_display(self) -> str:
        return self.underlying[len(self.underlying_namespace) + 1 :]


def synthesize_identifier(original: str) -> str:
    """Strip every non-alphanumeric character from ``original``."""
    return _NON_ALNUM.sub("", original) or "Alias"


def _strip_pointer(target: str) -> str:
    if target.startswith("*"):
        return target[1:]
    return target


@dataclass
class Registry:
    """
    Everything one build produces.

    - classifiers : namespace -> local name -> Classifier
    - aliases     : qualified alias name -> Alias
    - imports     : import alias -> dotted namespace
    - renamed     : namespace -> synthetic identifier -> original display name
    """

    classifiers: Dict[str, Dict[str, Classifier]] = field(default_factory=dict)
    aliases: Dict[str, Alias] = field(default_factory=dict)
    imports: Dict[str, str] = field(default_factory=dict)
    renamed: Dict[str, Dict[str, str]] = field(default_factory=dict)

    def get_or_create(self, namespace: str, name: str) -> Classifier:
        """Return the classifier ``namespace.name``, creating an untyped one if needed."""
        members = self.classifiers.setdefault(namespace, {})
        classifier = members.get(name)
        if classifier is None:
            classifier = Classifier(namespace=namespace, name=name)
            members[name] = classifier
        return classifier

    def get(self, qualified: str) -> Optional[Classifier]:
        """Look up a classifier by qualified name; None if it was never created."""
        if "." not in qualified:
            return None
        namespace, name = qualified.rsplit(".", 1)
        return self.classifiers.get(namespace, {}).get(name)

    def namespaces(self) -> List[str]:
        return sorted(self.classifiers)

    def iter_classifiers(self) -> Iterator[Classifier]:
        """All classifiers ordered by namespace, then name."""
        for namespace in self.namespaces():
            members = self.classifiers[namespace]
            for name in sorted(members):
                yield members[name]

    def records(self) -> List[Classifier]:
        return [c for c in self.iter_classifiers() if c.kind == RECORD]

    def interfaces(self) -> List[Classifier]:
        return [c for c in self.iter_classifiers() if c.kind == INTERFACE]

    def add_import(self, local_name: str, namespace: str) -> None:
        self.imports[local_name] = namespace

    def add_alias(self, alias: Alias) -> None:
        self.aliases[alias.qualified_name] = alias

    def sorted_aliases(self) -> List[Alias]:
        return sorted(self.aliases.values(), key=lambda a: (a.qualified_name, a.underlying))

    def register_renamed(self, namespace: str, original: str) -> str:
        """
        Record a synthetic identifier for ``original`` in ``namespace``.

        The same original always maps to the same identifier.  A numeric
        suffix is appended while the stripped text is already taken by another
        renamed entry or by a name in :meth:`reserved_names`.
        """
        table = self.renamed.setdefault(namespace, {})
        existing = self.synthetic_name(namespace, original)
        if existing is not None:
            return existing
        reserved = self.reserved_names(namespace)
        base = synthesize_identifier(original)
        candidate = base
        suffix = 2
        while candidate in table or candidate in reserved:
            candidate = f"{base}{suffix}"
            suffix += 1
        table[candidate] = original
        return candidate

    def reserved_names(self, namespace: str) -> Set[str]:
        """
        Names in ``namespace`` that already denote a diagram node: classifiers,
        plain identifier alias targets and, for the builtin namespace, every
        primitive type.
        """
        names = set(self.classifiers.get(namespace, {}))
        names.update(
            alias.underlying_display
            for alias in self.aliases.values()
            if alias.underlying_namespace == namespace and alias.underlying_display.isidentifier()
        )
        if namespace == BUILTIN_NAMESPACE:
            names.update(PRIMITIVES)
        return names

    def rename_alias_targets(self) -> None:
        """
        Give every alias target that is not a plain identifier a synthetic name.

        Runs once all declarations are known, so the synthetic names never
        shadow a classifier declared later in the build.
        """
        for alias in self.sorted_aliases():
            if not alias.underlying_display.isidentifier():
                self.register_renamed(alias.underlying_namespace, alias.underlying_display)

    def synthetic_name(self, namespace: str, original: str) -> Optional[str]:
        for synthetic, name in self.renamed.get(namespace, {}).items():
            if name == original:
                return synthetic
        return None

    def sorted_renamed(self, namespace: str) -> List[Tuple[str, str]]:
        """``(synthetic, original)`` pairs of ``namespace`` ordered by identifier."""
        return sorted(self.renamed.get(namespace, {}).items())
