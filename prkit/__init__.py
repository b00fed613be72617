"""prkit - pull request workflow helpers.

A small CLI that turns local changes into a pull request, squashes a PR into
a single co-authored commit, and asks an AI agent to review a PR. Everything
is delegated to the ``git`` and ``gh`` command line tools.
"""

__version__ = "0.1.0"
__author__ = "trobanga"
