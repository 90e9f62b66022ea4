"""Tests for the prediction client.

All tests run offline: HTTP traffic goes through scripted transport stubs
and delays are recorded instead of slept.
"""
