"""Packaged resources for toolcall."""
