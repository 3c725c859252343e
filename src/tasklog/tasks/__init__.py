# src/tasklog/tasks/__init__.py
