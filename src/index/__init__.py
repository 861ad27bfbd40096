# src/index/__init__.py — v1
