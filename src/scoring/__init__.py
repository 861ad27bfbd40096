# src/scoring/__init__.py — v1
