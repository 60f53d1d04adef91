"""
The `packaging` sub-package reads the declarative inputs of a build and
sequences it.

This includes:
- Reading build metadata from package and variant manifests.
- Extracting sources and patches from RPM spec files.
- Orchestrating the package and variant pipelines.
"""
