"""Audit logging package."""

from ortak_kasa.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
