#!/usr/bin/env python3
"""Convenience runner for the Ground Tracks command line.

Usage:
    python run.py import hike.gpx --dry-run
"""
import sys

from ground_tracks.main import main

if __name__ == "__main__":
    sys.exit(main())
