"""
Parliament Open Data Change Monitor

Walks the Assembleia da República open-data portal, fingerprints every
published XML dataset and reports the ones that changed since the last run.
"""

__version__ = "1.0.0"
__author__ = "AR Change Monitor"
