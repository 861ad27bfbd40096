# src/text/__init__.py — v1
