#!/usr/bin/env python3
"""
SPY CHASE Launcher
==================
Run this script to start the game.
"""

from spy_chase.main import main

if __name__ == "__main__":
    main()
