"""vconv - interactive ffmpeg front end.

Pick a media file, pick an output format, and follow the conversion with a
live progress bar while ffmpeg does the work.
"""

__version__ = "0.1.0"
