#!/usr/bin/env python3
"""mapfit Command-Line Interface"""
import sys

from mapfit.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
