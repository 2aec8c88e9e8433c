"""
Tests for the Maze Learning Engine
==================================

Run all tests:
    pytest tests/

Skip the slow ones:
    pytest tests/ -m "not slow"

The reference checks in test_torch_reference.py only run when torch is
installed (pip install -e .[test]).
"""
