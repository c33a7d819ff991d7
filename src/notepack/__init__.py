"""Bundle Markdown notes and their uploaded assets into portable ZIP archives."""

__version__ = "0.1.0"
