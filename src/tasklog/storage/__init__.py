# src/tasklog/storage/__init__.py
