"""Editor module - Stateful session tying input, history, preview and export."""

from mosaiceditor.editor.session import RedactionSession

__all__ = ["RedactionSession"]
