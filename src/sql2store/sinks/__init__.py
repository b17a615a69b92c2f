"""
Sink implementations.

Sinks persist serialized lines from the pipeline.
"""

from sql2store.sinks.base import AbstractSink
from sql2store.sinks.object_sink import ObjectSink

__all__ = [
    "AbstractSink",
    "ObjectSink",
]
