"""Importwright — plan imports of existing infrastructure into declarative config."""

from importwright.errors import (
    AmbiguousID,
    DuplicateAddress,
    ImportwrightError,
    InvalidAddress,
    MissingRequiredAttribute,
    NotBound,
    NotFound,
    TransientError,
    TypeMismatch,
    UnknownType,
)
from importwright.spec import (
    AttributeSchema,
    AttributeSpec,
    Binding,
    Expression,
    ImportRequest,
    LedgerEntry,
    RenderedAttribute,
    RenderedBlock,
)

__version__ = "0.1.0"

__all__ = [
    "AmbiguousID",
    "AttributeSchema",
    "AttributeSpec",
    "Binding",
    "BindingLedger",
    "ConfigEmitter",
    "DuplicateAddress",
    "Expression",
    "ImportPlanner",
    "ImportReport",
    "ImportRequest",
    "ImportSettings",
    "ImportwrightError",
    "InvalidAddress",
    "LedgerEntry",
    "MissingRequiredAttribute",
    "NotBound",
    "NotFound",
    "RemoteStateFetcher",
    "RenderedAttribute",
    "RenderedBlock",
    "SchemaRegistry",
    "TransientError",
    "TypeMismatch",
    "UnknownType",
    "load_registry",
    "load_settings",
    "reconcile",
]


def __getattr__(name: str):
    # Lazy imports keep `import importwright` light for the CLI
    if name == "BindingLedger":
        from importwright.ledger import BindingLedger

        return BindingLedger
    if name == "ConfigEmitter":
        from importwright.exporter.emitter import ConfigEmitter

        return ConfigEmitter
    if name == "ImportPlanner":
        from importwright.planner import ImportPlanner

        return ImportPlanner
    if name == "ImportReport":
        from importwright.planner import ImportReport

        return ImportReport
    if name == "ImportSettings":
        from importwright.config import ImportSettings

        return ImportSettings
    if name == "load_settings":
        from importwright.config import load_settings

        return load_settings
    if name == "RemoteStateFetcher":
        from importwright.fetcher import RemoteStateFetcher

        return RemoteStateFetcher
    if name == "SchemaRegistry":
        from importwright.registry import SchemaRegistry

        return SchemaRegistry
    if name == "load_registry":
        from importwright.registry import load_registry

        return load_registry
    if name == "reconcile":
        from importwright.reconciler import reconcile

        return reconcile
    raise AttributeError(f"module 'importwright' has no attribute {name!r}")
