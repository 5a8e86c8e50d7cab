#!/usr/bin/env python3
"""
Self-Healing Recovery MCP Server launcher.

Runs the recovery engine's MCP server over stdio.
"""

from recovery_engine.server import run

if __name__ == "__main__":
    run()
