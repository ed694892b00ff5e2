"""Builtin plugins shipped with multivocal."""
