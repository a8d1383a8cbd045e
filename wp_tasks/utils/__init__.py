"""
Wrappers around the external tools used by the tasks
"""
