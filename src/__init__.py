"""Application Layer.

Infrastructure adapters that load tiles from disk and hand them to the
domain as Value Objects. All file I/O lives here.
"""
