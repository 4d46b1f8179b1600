"""
Test package for the Azure infrastructure client
"""

import unittest
import sys
from pathlib import Path

# Make the package importable without installing it
sys.path.insert(0, str(Path(__file__).parent.parent))


def run_all_tests():
    """Discover and run every test module next to this file"""
    suite = unittest.TestLoader().discover(str(Path(__file__).parent), pattern='test_*.py')
    result = unittest.TextTestRunner(verbosity=2).run(suite)
    return result.wasSuccessful()


if __name__ == '__main__':
    sys.exit(0 if run_all_tests() else 1)
