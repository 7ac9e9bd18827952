"""
RebrandKit: rebrand a template Flutter app and build it for release.

Copies a template project, rewrites its identity for Android and iOS, prepares
signing credentials, drives the native toolchains and collects the installable
artifacts into one folder per bundle identifier.
"""

__version__ = "1.0.0"
__author__ = "RebrandKit Team"
