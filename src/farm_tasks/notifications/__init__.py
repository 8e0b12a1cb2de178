"""
Notification subsystem.

Components:
- dispatcher.py: permission gate, background push with foreground fallback, audio cue
- watcher.py: notifies when the pending-alert queue grows
- console_platform.py: terminal implementation of the platform port
- push.py: webhook-based background notifier
"""
