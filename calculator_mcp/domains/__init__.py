"""
Domain Services

Each domain module contains one service and the capability table it exposes.
This isolation keeps adding or removing a domain a single-file operation.

To add a new domain:
1. Create domains/newdomain.py with a service exposing tools(), resources() or prompts()
2. Register it in registry.create_default_registry()

To remove a domain:
1. Delete domains/domainname.py
2. Remove it from registry.create_default_registry()
"""

from .calculator import CalculatorTools
from .files import ProjectResources
from .prompts import DevelopmentPrompts

__all__ = [
    "CalculatorTools",
    "ProjectResources",
    "DevelopmentPrompts",
]
