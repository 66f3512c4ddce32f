"""
Value Objects for domain IDs.

NewType provides compile-time type safety with zero runtime overhead.
"""

from typing import NewType

HandleId = NewType("HandleId", str)
SecretName = NewType("SecretName", str)
