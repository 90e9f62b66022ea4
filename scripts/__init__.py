"""Utility scripts for working with the prediction API.

Scripts include:
- ``run_prediction.py``: run, inspect, and cancel predictions from a shell.
"""
