"""
Component Wiring for the Finance Tracker

This module ties together settings, storage, audit logging and the
ledger engine. The presentation layer asks for one engine here at
startup and passes it down; there is no module-level ledger singleton.
"""

from pathlib import Path
from typing import Optional, Union

import structlog

from finance_tracker.audit import AuditLogger, configure_log_level
from finance_tracker.config import Settings, get_settings
from finance_tracker.ledger import LedgerEngine
from finance_tracker.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
)


logger = structlog.get_logger(__name__)


def create_store(
    settings: Optional[Settings] = None,
    path: Optional[Union[str, Path]] = None,
) -> KeyValueStoreInterface:
    """
    Build the configured key-value store.

    Args:
        settings: Settings to read; defaults to the cached global settings
        path: Overrides the configured file path for the json_file backend
    """
    settings = settings or get_settings()
    storage_settings = settings.storage

    if storage_settings.backend == "memory":
        return InMemoryKeyValueStore()
    return JsonFileKeyValueStore(path or storage_settings.path)


def create_ledger_engine(
    store: Optional[KeyValueStoreInterface] = None,
    settings: Optional[Settings] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> LedgerEngine:
    """
    Factory function to create a ready-to-init ledger engine.

    The engine is NOT hydrated yet; call `await engine.init()` (or use
    it as an async context manager) before relying on stored totals.

    Args:
        store: Storage backend. Built from settings when omitted.
        settings: Settings to read; defaults to the cached global settings
        audit_logger: Shared audit logger, a fresh one when omitted

    Returns:
        The configured LedgerEngine
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_log_level(app_settings.effective_log_level)

    store = store or create_store(settings)
    limit_policy = settings.ledger.limit_policy

    logger.info(
        "ledger_engine_created",
        store=type(store).__name__,
        limit_policy=limit_policy.value,
        environment=app_settings.app_environment,
    )
    return LedgerEngine(
        store=store,
        limit_policy=limit_policy,
        audit_logger=audit_logger or AuditLogger(),
    )
