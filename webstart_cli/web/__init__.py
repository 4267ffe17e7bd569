"""
Web Layer.

This package contains the descriptor reader, which fetches JNLP documents
and turns them into launch descriptors.
"""

from .descriptor_reader import DescriptorReader

__all__ = ["DescriptorReader"]
