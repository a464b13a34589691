"""leakwatch: soak harness that watches memory across repeated image-processing runs."""

__version__ = "0.1.0"
