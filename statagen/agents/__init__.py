# StataGen Agents Package
"""
Agent modules for the two language-model exchanges:
- suggester: Variable taxonomy suggestion
- coder: Stata code generation for a catalog method
"""

from .suggester import fetch_variables
from .coder import generate_code

__all__ = ["fetch_variables", "generate_code"]
