"""Media introspection (duration probing) via ffprobe."""

from vconv.introspector.ffprobe import FFprobeIntrospector

__all__ = ["FFprobeIntrospector"]
