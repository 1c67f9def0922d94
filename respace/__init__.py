"""Respace

Workspace launch orchestration and window tracking engine.

This package launches a workspace (applications, files, folders, URLs and
terminal commands) as one group and then:
- Tracks which windows or application instances the launch actually created
- Re-verifies tracked artifacts against live OS state
- Closes exactly those artifacts, leaving pre-existing user work alone

License: MIT
Version: 1.0.0
"""

__version__ = "1.0.0"
