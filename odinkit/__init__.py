"""
OdinKit - provision the Odin compiler on CI runners.

Restores a cached Odin checkout or clones a fresh one, installs the LLVM
version the build needs, builds the compiler when the cache cannot be trusted
and exposes it on PATH.
"""

__version__ = "0.1.0"
