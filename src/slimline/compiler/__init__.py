"""Syntax tree to IR lowering."""
