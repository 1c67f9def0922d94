"""AppleScript sources used through the scripting bridge.

Every script reads its variable inputs from argv (`on run argv`); nothing
user-supplied is ever spliced into script text. Scripts that address an
application directly check `is running` first, since telling a stopped
application anything launches it.
"""

# argv: process name
WINDOW_IDS_DIRECT = """
on run argv
  if application (item 1 of argv) is running then
    tell application (item 1 of argv)
      return id of every window
    end tell
  end if
  return ""
end run
"""

# argv: process name
WINDOW_IDS_UI = """
on run argv
  tell application "System Events"
    tell process (item 1 of argv)
      set ids to {}
      repeat with w in windows
        try
          set end of ids to (value of attribute "AXWindowNumber" of w)
        end try
      end repeat
      return ids
    end tell
  end tell
end run
"""

# argv: process name, window id
WINDOW_TITLE = """
on run argv
  if application (item 1 of argv) is running then
    tell application (item 1 of argv)
      return name of window id ((item 2 of argv) as integer)
    end tell
  end if
  return ""
end run
"""

# argv: process name, window id
CLOSE_WINDOW_UI = """
on run argv
  tell application "System Events"
    tell process (item 1 of argv)
      set targetNumber to (item 2 of argv) as integer
      repeat with w in windows
        if (value of attribute "AXWindowNumber" of w) is targetNumber then
          click (first button of w whose subrole is "AXCloseButton")
          return "closed"
        end if
      end repeat
    end tell
  end tell
  error "window not found"
end run
"""

# argv: process name, window id
CLOSE_WINDOW_DIRECT = """
on run argv
  if application (item 1 of argv) is running then
    tell application (item 1 of argv)
      close window id ((item 2 of argv) as integer)
    end tell
  end if
end run
"""

# argv: application name
QUIT_APPLICATION = """
on run argv
  if application (item 1 of argv) is running then
    tell application (item 1 of argv) to quit
  end if
end run
"""

# argv: terminal application name, command text
RUN_IN_TERMINAL = """
on run argv
  tell application (item 1 of argv)
    activate
    do script (item 2 of argv as text)
  end tell
end run
"""

# argv: file manager name, path
COUNT_PATH_WINDOWS = """
on run argv
  set matches to 0
  tell application (item 1 of argv)
    repeat with w in (every Finder window)
      try
        if POSIX path of (target of w as alias) contains (item 2 of argv) then set matches to matches + 1
      end try
    end repeat
  end tell
  return matches
end run
"""

# argv: file manager name, path
CLOSE_PATH_WINDOWS = """
on run argv
  tell application (item 1 of argv)
    repeat with w in (every Finder window)
      try
        if POSIX path of (target of w as alias) contains (item 2 of argv) then close w
      end try
    end repeat
  end tell
end run
"""
