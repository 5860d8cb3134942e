"""coremeter - per-core CPU and memory usage sampler."""

__version__ = "0.1.0"
