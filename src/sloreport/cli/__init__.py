"""
CLI commands for sloreport.
"""

from sloreport.cli.fetch import fetch_command
from sloreport.cli.init import init_command
from sloreport.cli.render import render_command, run_command
from sloreport.cli.summary import summary_command

__all__ = [
    "fetch_command",
    "init_command",
    "render_command",
    "run_command",
    "summary_command",
]
