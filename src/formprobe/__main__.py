#!/usr/bin/env python3
"""
Allow running formprobe as a module: python -m formprobe

Which is equivalent to:
    formprobe [OPTIONS] COMMAND
"""

from formprobe.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
