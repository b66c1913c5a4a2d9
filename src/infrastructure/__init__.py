"""Infrastructure Layer.

Adapters that perform file I/O and hand back domain Value Objects.
"""
