"""
webstart-cli: downloads the archives named by a JNLP descriptor and launches
its entry point in a supervised child runtime.
"""

__version__ = "1.0.0"
