"""CodeQL CLI distribution manager.

Finds a usable CodeQL launcher, checks GitHub for newer compatible
releases and installs them into rotating storage folders.
"""

__version__ = "1.0.0"
