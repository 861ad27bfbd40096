# src/corpus/__init__.py — v1
