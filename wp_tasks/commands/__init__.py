"""
Task implementations behind the wp-tasks commands
"""
