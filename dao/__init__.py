# MIT License
# Copyright (c) 2025 Hashborn

"""
DAO runtime: token farm, dividends distributor, treasury, storage and RPC.
"""
