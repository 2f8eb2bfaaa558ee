# MIT License
# Copyright (c) 2025 Hashborn

from .params import FarmConfig, NETWORKS, CURRENT_CONFIG, get_config

__all__ = ["FarmConfig", "NETWORKS", "CURRENT_CONFIG", "get_config"]
