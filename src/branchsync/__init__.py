"""Keep local git branches in sync with their remote.

Features:
- Fast-forward branches that trail their remote counterpart
- Delete branches whose upstream is gone once they are merged into the default branch
- Warn about branches with unpushed commits instead of touching them
- Never rewrites history, never prompts
"""

__version__ = "0.1.0"
