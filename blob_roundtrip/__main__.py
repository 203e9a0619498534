#!/usr/bin/env python3
"""
Entry point for running blob_roundtrip as a module.
This file enables: python -m blob_roundtrip
"""

from .main import main

if __name__ == '__main__':
    main()
