"""
Directory Monitor Watchers

- manifest.py - waits for the manifest generator to finish writing
"""
