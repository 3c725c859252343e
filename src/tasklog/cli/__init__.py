# src/tasklog/cli/__init__.py
