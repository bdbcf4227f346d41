#!/usr/bin/env python3
"""
Entry point for the bird photo uploader.
"""

from birdsync.cli import main


if __name__ == "__main__":
    main()
