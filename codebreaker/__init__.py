"""Codebreaker contest backend."""
