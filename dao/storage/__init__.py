# MIT License
# Copyright (c) 2025 Hashborn

from .db import StorageDB

__all__ = ["StorageDB"]
