"""Persistence interfaces and their SQLAlchemy implementations."""

from talentflow.services.stores.base import (
    ApplicationStore,
    FlagStore,
    InterviewStore,
    JobStore,
    NoteStore,
    PipelineStores,
    TransactionFactory,
)
from talentflow.services.stores.sql import build_sql_stores, sql_transaction_factory

__all__ = [
    "ApplicationStore",
    "FlagStore",
    "InterviewStore",
    "JobStore",
    "NoteStore",
    "PipelineStores",
    "TransactionFactory",
    "build_sql_stores",
    "sql_transaction_factory",
]
