"""
Dueffe Ledger - Source Package

The ledger and envelope-allocation engine behind the Dueffe personal
finance app. Users keep money in accounts and set part of it aside in
labeled envelopes ("salvadanai"): fixed targets, monthly refills or
open-ended savings.

DESIGN PRINCIPLES:
1. Balances are maintained incrementally, never recomputed
2. Every balance effect has an exact inverse
3. Fail early, fail visibly
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Dueffe Team"
