"""Namespace-qualified function arguments (``namespace::name``)."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

NAMESPACE_SEPARATOR = "::"


@dataclass(frozen=True)
class FunctionRef:
    """A requested function, optionally qualified by a namespace."""

    namespace: str | None
    name: str


def parse_function_refs(args: Iterable[str]) -> list[FunctionRef]:
    """Split ``namespace::name`` arguments; flags are skipped.

    A namespace carries over to the following unqualified names until another
    qualified argument replaces it. A leading ``::`` clears it.
    """
    refs: list[FunctionRef] = []
    namespace: str | None = None
    for arg in args:
        if arg.startswith("-"):
            continue
        prefix, separator, name = arg.partition(NAMESPACE_SEPARATOR)
        if separator:
            namespace = prefix or None
        else:
            name = prefix
        refs.append(FunctionRef(namespace=namespace, name=name))
    return refs
