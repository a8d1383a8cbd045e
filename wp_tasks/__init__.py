"""
wp-tasks
========

Provision, configure, deploy and test a WordPress site, locally and on
Pantheon, by driving composer, WP-CLI, git, rsync, terminus and behat.
"""

__version__ = "0.1.0"
