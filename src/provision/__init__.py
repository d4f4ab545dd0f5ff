"""
Provision - declarative hosting provisioning

Models servers, platforms and sites as typed Contexts, resolves what each
one depends on, and verifies them in dependency order.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
