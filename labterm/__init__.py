"""
LabTerm

Simulated cloud-lab terminal sessions for student exercises.
"""

__version__ = "0.1.0"
