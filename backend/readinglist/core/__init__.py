"""Framework-free building blocks: URL checks, pagination, debouncing."""
