# MIT License
# Copyright (c) 2025 Hashborn

"""
Observability Module

Provides metrics and monitoring for the DAO runtime.
"""

from .metrics import metrics_registry, update_metrics, register_event_metrics

__all__ = ['metrics_registry', 'update_metrics', 'register_event_metrics']
