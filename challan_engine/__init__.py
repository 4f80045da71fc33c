"""
Challan billing engine.

Resolves what each student owes per billing period, issues uniquely
numbered fee challans and manages their lifecycle.
"""

__version__ = "1.0.0"
