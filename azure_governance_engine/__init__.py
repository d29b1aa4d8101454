"""
Azure Governance Engine
=======================
A read-only Azure audit engine: evaluates CIS-style controls across subscriptions,
computes a weighted compliance score, and flags NSG rules exposing risky ports
to the internet.

WARNING: This tool operates in STRICT READ-ONLY mode.
         No write operations will be performed against Azure resources.
"""

__version__ = "1.0.0"
__mode__ = "READ-ONLY"
