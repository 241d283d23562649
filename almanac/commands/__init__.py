"""
Commands Package.

Command classes wrapping every user-facing calendar mutation. Commands
never raise; they report through CommandResult and can be undone.
"""
