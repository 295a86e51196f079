"""
Pytest configuration for mpm-phasefield tests.

Automatically adds src/ and repo root to sys.path so tests can import
mpm_phasefield and the examples namespace without PYTHONPATH.
"""

import sys
import os

import numpy as np
import pytest

# Add repo root and src/ to path for module imports
repo_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
src_path = os.path.join(repo_root, 'src')

if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

if src_path not in sys.path:
    sys.path.insert(0, src_path)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
