# MIT License
# Copyright (c) 2025 Hashborn

"""
Protocol layer of the DAO: parameters, data types and unit helpers.
"""
